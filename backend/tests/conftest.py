"""
Pytest configuration and fixtures for the SEO audit pipeline tests.
"""
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from seoaudit.api.deps import get_job_store, get_url_validator
from seoaudit.database import create_session_maker
from seoaudit.integrations.storage import LocalStorageClient
from seoaudit.models.base import Base
from seoaudit.schemas.audit import CrawlResult
from seoaudit.services.job_store import InMemoryJobStore, SqlAlchemyJobStore
from seoaudit.services.url_validator import UrlValidator

from factories import make_crawl

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ============================================================================
# Page Data Fixtures
# ============================================================================

@pytest.fixture
def clean_crawl() -> CrawlResult:
    return make_crawl()


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture
def memory_store() -> InMemoryJobStore:
    return InMemoryJobStore()


@pytest_asyncio.fixture(scope="function")
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def sql_store(test_engine: AsyncEngine) -> SqlAlchemyJobStore:
    return SqlAlchemyJobStore(create_session_maker(test_engine))


@pytest.fixture
def storage(tmp_path) -> LocalStorageClient:
    return LocalStorageClient(base_path=tmp_path, base_url="http://test/files")


# ============================================================================
# Mock Fixtures
# ============================================================================

@pytest.fixture
def mock_llm():
    """Configured LLM client whose responses each test sets."""
    mock = MagicMock()
    mock.is_configured = True
    mock.complete = AsyncMock(return_value="")
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def mock_browser():
    """Browser session usable with ``async with``."""
    mock = MagicMock()
    mock.__aenter__ = AsyncMock(return_value=mock)
    mock.__aexit__ = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def public_resolver():
    """DNS stand-in: a few public hosts plus IP literals resolving to themselves."""
    table = {
        "example.com": ["93.184.216.34"],
        "www.example.com": ["93.184.216.34"],
        "example.org": ["93.184.216.35"],
        "internal.example.com": ["10.0.0.5"],
        "mixed.example.com": ["93.184.216.36", "192.168.1.10"],
        "v6.example.com": ["2606:2800:220:1:248:1893:25c8:1946"],
    }

    def resolve(hostname: str) -> list[str]:
        if hostname in table:
            return table[hostname]
        if hostname.replace(".", "").isdigit() or ":" in hostname:
            return [hostname]
        raise OSError(f"Name or service not known: {hostname}")

    return resolve


# ============================================================================
# FastAPI App Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def app(memory_store: InMemoryJobStore, public_resolver) -> FastAPI:
    """Create test FastAPI application backed by the in-memory store."""
    from seoaudit.main import app as main_app

    main_app.dependency_overrides[get_job_store] = lambda: memory_store
    main_app.dependency_overrides[get_url_validator] = lambda: UrlValidator(resolver=public_resolver)

    yield main_app

    main_app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
