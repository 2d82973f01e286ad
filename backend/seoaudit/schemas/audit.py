"""
Audit schemas.

Value objects produced by the pipeline stages and the job record that
carries them through its lifecycle.
"""
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from seoaudit.schemas.common import BaseSchema, FrozenSchema


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class UrlStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class IssueSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class IssueCategory(str, Enum):
    META = "meta"
    CONTENT = "content"
    PERFORMANCE = "performance"
    ACCESSIBILITY = "accessibility"
    TECHNICAL = "technical"
    MOBILE = "mobile"


# =========================================================================
# Page data
# =========================================================================

class Heading(FrozenSchema):
    level: int = Field(ge=1, le=6)
    text: str = ""


class PageImage(FrozenSchema):
    src: str = ""
    alt: str = ""
    has_alt: bool = False


class PageLink(FrozenSchema):
    href: str
    text: str = ""
    is_external: bool = False


class CrawlResult(FrozenSchema):
    """Structured data extracted from one rendered page."""

    url: str
    status_code: int = 0
    load_time_ms: int = 0
    html: str = ""
    title: str = ""
    meta_description: str = ""
    meta_keywords: str = ""
    canonical_url: str = ""
    og_tags: dict[str, str] = Field(default_factory=dict)
    headings: list[Heading] = Field(default_factory=list)
    images: list[PageImage] = Field(default_factory=list)
    links: list[PageLink] = Field(default_factory=list)
    word_count: int = 0
    robots_meta: str = ""
    has_viewport_meta: bool = False
    structured_data: list[Any] = Field(default_factory=list)
    desktop_screenshot_path: str | None = None
    mobile_screenshot_path: str | None = None


class Issue(BaseSchema):
    """A single finding. Only the text fields change after creation (translation)."""

    severity: IssueSeverity
    category: IssueCategory
    title: str
    description: str
    recommendation: str


# =========================================================================
# External tool results
# =========================================================================

class PerformanceScores(FrozenSchema):
    performance: int | None = Field(default=None, ge=0, le=100)
    accessibility: int | None = Field(default=None, ge=0, le=100)
    best_practices: int | None = Field(default=None, ge=0, le=100)
    seo: int | None = Field(default=None, ge=0, le=100)


class CoreWebVitals(FrozenSchema):
    lcp: float | None = None  # Largest Contentful Paint (ms)
    fid: float | None = None  # First Input Delay (ms)
    cls: float | None = None  # Cumulative Layout Shift
    fcp: float | None = None  # First Contentful Paint (ms)
    ttfb: float | None = None  # Time to First Byte (ms)


class PerformanceAudit(FrozenSchema):
    scores: PerformanceScores
    core_web_vitals: CoreWebVitals


class ContentReview(FrozenSchema):
    content_quality: int = Field(ge=1, le=10)
    readability: int = Field(ge=1, le=10)
    keyword_relevance: int = Field(ge=1, le=10)
    recommendations: list[str] = Field(default_factory=list)
    summary: str = ""


# =========================================================================
# Job record
# =========================================================================

class UrlResult(BaseSchema):
    """Outcome for one URL, filled in as the stages complete."""

    url: str
    status: UrlStatus = UrlStatus.SUCCESS
    error: str | None = None
    crawl: CrawlResult | None = None
    issues: list[Issue] = Field(default_factory=list)
    performance_scores: PerformanceScores | None = None
    core_web_vitals: CoreWebVitals | None = None
    content_review: ContentReview | None = None
    has_sitemap: bool | None = None
    has_robots_txt: bool | None = None

    def mark_error(self, message: str) -> None:
        self.status = UrlStatus.ERROR
        self.error = message
        self.crawl = None
        self.issues = []


class Progress(BaseSchema):
    current_url: str = ""
    current_step: str = ""
    completed_urls: int = Field(default=0, ge=0)
    total_urls: int = Field(default=0, ge=0)


class CategoryScores(FrozenSchema):
    technical: int = Field(ge=0, le=100)
    content: int = Field(ge=0, le=100)
    performance: int = Field(ge=0, le=100)
    accessibility: int = Field(ge=0, le=100)


class IssueCounts(FrozenSchema):
    critical: int = 0
    warning: int = 0
    info: int = 0


class Summary(FrozenSchema):
    overall_score: int = Field(ge=0, le=100)
    category_scores: CategoryScores
    top_issues: list[Issue]
    executive_summary: str
    total_issues: IssueCounts
    total_urls: int = 0
    successful_urls: int = 0


class AuditJob(BaseSchema):
    """One audit run as seen by pollers."""

    id: str
    urls: list[str]
    language: str = "en"
    status: JobStatus = JobStatus.PENDING
    progress: Progress | None = None
    results: list[UrlResult] = Field(default_factory=list)
    summary: Summary | None = None
    report_path: str | None = None
    error: str | None = None
    requested_by: str | None = None
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


# =========================================================================
# Requests
# =========================================================================

class UrlValidationResult(BaseSchema):
    valid: bool
    urls: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class AuditValidate(BaseSchema):
    """Validate-only request: newline-delimited URLs."""

    urls: str


class AuditCreate(BaseSchema):
    """Create audit request."""

    urls: str
    language: str = Field(default="en", min_length=2, max_length=8)
