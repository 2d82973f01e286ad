"""
Report Generator

Renders the finished audit (summary plus per-URL results) into a single
self-contained HTML document using Jinja2 templates, and stores it next
to the audit's screenshots.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from seoaudit.integrations.storage import AuditStoragePaths, BaseStorageClient
from seoaudit.schemas.audit import IssueSeverity, Summary, UrlResult, UrlStatus

logger = logging.getLogger(__name__)

# Template directory
TEMPLATE_DIR = Path(__file__).parent / "templates"

SEVERITY_COLORS = {
    IssueSeverity.CRITICAL: "#dc2626",
    IssueSeverity.WARNING: "#d97706",
    IssueSeverity.INFO: "#2563eb",
}


def score_grade(score: int | None) -> str:
    if score is None:
        return "N/A"
    return (
        "A+" if score >= 95 else
        "A" if score >= 90 else
        "B+" if score >= 85 else
        "B" if score >= 80 else
        "C+" if score >= 75 else
        "C" if score >= 70 else
        "D" if score >= 60 else
        "F"
    )


def score_color(score: int | None) -> str:
    if score is None:
        return "#9ca3af"
    if score >= 90:
        return "#16a34a"
    if score >= 50:
        return "#d97706"
    return "#dc2626"


def get_jinja_env() -> Environment:
    """Get configured Jinja2 environment."""
    env = Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=select_autoescape(["html", "xml", "j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )

    env.filters["score_grade"] = score_grade
    env.filters["score_color"] = score_color
    env.filters["severity_color"] = lambda s: SEVERITY_COLORS.get(s, "#6b7280")
    env.filters["truncate_url"] = lambda url, length=60: (
        url if len(url) <= length else url[:length - 3] + "..."
    )
    env.filters["vital"] = lambda value, unit="ms": (
        "N/A" if value is None else
        f"{value:.3f}" if unit == "" else
        f"{value:,.0f} {unit}"
    )

    return env


class ReportGenerator:
    """Renders and stores the HTML audit report."""

    TEMPLATE_NAME = "report.html.j2"

    def __init__(self, storage: BaseStorageClient):
        self.storage = storage
        self.env = get_jinja_env()
        self.env.filters["public_url"] = storage.get_public_url

    def render_html(
        self,
        urls: list[str],
        results: list[UrlResult],
        summary: Summary,
        language: str = "en",
    ) -> str:
        template = self.env.get_template(self.TEMPLATE_NAME)
        return template.render(
            urls=urls,
            results=results,
            summary=summary,
            language=language,
            generated_at=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
            success_status=UrlStatus.SUCCESS,
        )

    async def render(
        self,
        job_id: str,
        urls: list[str],
        results: list[UrlResult],
        summary: Summary,
        language: str = "en",
    ) -> str:
        """
        Render the report and store it.

        Returns:
            Storage key of the stored report
        """
        html = self.render_html(urls, results, summary, language)
        key = self.storage.upload_text(AuditStoragePaths.report(job_id), html)
        logger.info(f"[Report] Stored report for audit {job_id} at {key}")
        return key
