"""
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from seoaudit.api.v1.router import api_router
from seoaudit.config import settings
from seoaudit.core.logging import configure_logging
from seoaudit.database import AsyncSessionLocal, init_db
from seoaudit.services.job_store import SqlAlchemyJobStore, cleanup_stale_audits
from seoaudit.worker import celery_app

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    configure_logging()
    await init_db()
    # Recover jobs left running by a previous crash
    await cleanup_stale_audits(SqlAlchemyJobStore(AsyncSessionLocal))
    # Reset Celery connection pool to ensure fresh connections
    celery_app.close()
    yield
    # Shutdown
    celery_app.close()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.VERSION}
