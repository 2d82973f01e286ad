"""
Exceptions for the SEO audit pipeline.
"""
from fastapi import HTTPException, status


class AuditJobNotFound(LookupError):
    """Raised by a job store when the requested job does not exist."""

    def __init__(self, job_id: str):
        super().__init__(f"Audit job {job_id} not found")
        self.job_id = job_id


class NotFoundError(HTTPException):
    """Resource not found exception."""

    def __init__(self, resource: str = "Resource"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found"
        )


class BadRequestError(HTTPException):
    """Bad request exception."""

    def __init__(self, detail: str | dict | list):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )
