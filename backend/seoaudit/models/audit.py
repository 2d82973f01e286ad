"""
SEO audit job table.

Nested pipeline structures (progress, per-URL results, summary) are kept
as JSON documents; each is rewritten whole on update.
"""
from sqlalchemy import JSON, Column, DateTime, Enum, String, Text

from seoaudit.models.base import Base, BaseModel
from seoaudit.schemas.audit import JobStatus


class SeoAuditJob(Base, BaseModel):
    """One audit run over a batch of URLs."""

    __tablename__ = "seo_audits"

    urls = Column(JSON, nullable=False, default=list)
    language = Column(String(8), nullable=False, default="en")
    status = Column(
        Enum(JobStatus, values_callable=lambda e: [m.value for m in e]),
        default=JobStatus.PENDING,
        nullable=False,
        index=True,
    )
    progress = Column(JSON, nullable=True)
    results = Column(JSON, nullable=False, default=list)
    summary = Column(JSON, nullable=True)
    report_path = Column(Text, nullable=True)
    error = Column(Text, nullable=True)
    requested_by = Column(String(255), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<SeoAuditJob {self.id} ({self.status.value})>"
