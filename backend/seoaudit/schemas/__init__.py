"""
Pydantic schemas for the SEO audit pipeline.
"""
from seoaudit.schemas.audit import (
    AuditCreate,
    AuditJob,
    AuditValidate,
    CategoryScores,
    ContentReview,
    CoreWebVitals,
    CrawlResult,
    Heading,
    Issue,
    IssueCategory,
    IssueCounts,
    IssueSeverity,
    JobStatus,
    PageImage,
    PageLink,
    PerformanceAudit,
    PerformanceScores,
    Progress,
    Summary,
    UrlResult,
    UrlStatus,
    UrlValidationResult,
)

__all__ = [
    "AuditCreate",
    "AuditJob",
    "AuditValidate",
    "CategoryScores",
    "ContentReview",
    "CoreWebVitals",
    "CrawlResult",
    "Heading",
    "Issue",
    "IssueCategory",
    "IssueCounts",
    "IssueSeverity",
    "JobStatus",
    "PageImage",
    "PageLink",
    "PerformanceAudit",
    "PerformanceScores",
    "Progress",
    "Summary",
    "UrlResult",
    "UrlStatus",
    "UrlValidationResult",
]
