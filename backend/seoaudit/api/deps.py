"""
Shared FastAPI dependencies.
"""
from typing import Annotated

from fastapi import Depends

from seoaudit.database import AsyncSessionLocal
from seoaudit.services.job_store import JobStore, SqlAlchemyJobStore
from seoaudit.services.url_validator import UrlValidator


def get_job_store() -> JobStore:
    return SqlAlchemyJobStore(AsyncSessionLocal)


def get_url_validator() -> UrlValidator:
    return UrlValidator()


JobStoreDep = Annotated[JobStore, Depends(get_job_store)]
UrlValidatorDep = Annotated[UrlValidator, Depends(get_url_validator)]
