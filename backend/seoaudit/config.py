from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    PROJECT_NAME: str = "SEO Audit Pipeline"
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"

    API_V1_STR: str = "/api/v1"

    DATABASE_URL: str = "sqlite+aiosqlite:///./seoaudit.db"
    REDIS_URL: str = "redis://localhost:6379/0"

    # Local Filesystem Storage (screenshots and rendered reports)
    LOCAL_STORAGE_PATH: str = "/var/uploads"
    LOCAL_STORAGE_BASE_URL: str = "http://localhost:8000/files"

    # LLM Configuration
    # Provider: "openai", "anthropic", or "local" (LM Studio)
    LLM_PROVIDER: str = "anthropic"
    LLM_BASE_URL: str = "https://api.anthropic.com/v1"
    LLM_API_KEY: str = ""
    LLM_MODEL: str = "claude-sonnet-4-5-20250929"
    LLM_REVIEW_TIMEOUT: float = 30.0
    LLM_TRANSLATE_TIMEOUT: float = 60.0
    LLM_SUMMARY_TIMEOUT: float = 60.0
    LLM_MAX_BODY_WORDS: int = 3000

    # PageSpeed Insights (Lighthouse) Configuration
    PAGESPEED_API_KEY: str = ""
    PAGESPEED_STRATEGY: str = "mobile"
    PAGESPEED_TIMEOUT: float = 90.0

    # Audit pipeline
    SEO_AUDIT_MAX_URLS: int = 20
    SEO_AUDIT_MAX_URL_LENGTH: int = 2048
    SEO_AUDIT_URL_TIMEOUT: float = 120.0  # per-URL deadline, seconds
    SEO_AUDIT_NAV_TIMEOUT_MS: int = 30000
    SEO_AUDIT_PROBE_TIMEOUT: float = 5.0
    SEO_AUDIT_STALE_MINUTES: int = 10
    SEO_AUDIT_TOP_ISSUES: int = 10
    SEO_AUDIT_DEFAULT_LANGUAGE: str = "en"
    SEO_AUDIT_HEADLESS: bool = True

    CORS_ORIGINS: str = "http://localhost:5173"

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins_list(self) -> List[str]:
        if isinstance(self.CORS_ORIGINS, str):
            return [o.strip() for o in self.CORS_ORIGINS.split(",")]
        return self.CORS_ORIGINS


settings = Settings()
