"""
Audit Orchestrator

Drives one audit job from pending to a terminal state:

    pending -> running -> completed | failed

URLs are processed strictly one after another against a single shared
browser session. Each URL runs under its own deadline and its failures
stay in its UrlResult. Partial results are persisted after every URL so
a poller sees them before the job finishes.
"""

import asyncio
import logging
from datetime import datetime, timezone

from seoaudit.config import settings
from seoaudit.core.exceptions import AuditJobNotFound
from seoaudit.integrations.llm import LLMClient
from seoaudit.integrations.pagespeed import PageSpeedClient
from seoaudit.integrations.storage import BaseStorageClient, get_storage_client
from seoaudit.schemas.audit import (
    AuditJob,
    Issue,
    JobStatus,
    Progress,
    UrlResult,
    UrlValidationResult,
)
from seoaudit.services.analyzer import analyze
from seoaudit.services.content_reviewer import ContentReviewer
from seoaudit.services.crawler import BrowserConfig, BrowserSession, PageCrawler
from seoaudit.services.job_store import JobStore
from seoaudit.services.prober import SiteProber
from seoaudit.services.report_generator import ReportGenerator
from seoaudit.services.scoring import build_summary
from seoaudit.services.url_validator import UrlValidator

logger = logging.getLogger(__name__)


class AuditStep:
    CRAWLING = "Crawling page..."
    ANALYZING = "Analyzing SEO..."
    PERFORMANCE = "Running performance audit..."
    CONTENT = "AI content analysis..."
    TRANSLATING = "Translating findings..."
    REPORTING = "Generating report..."
    COMPLETE = "Complete"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditOrchestrator:
    """Runs the per-URL pipeline and assembles the final summary."""

    def __init__(
        self,
        store: JobStore,
        browser: BrowserSession,
        storage: BaseStorageClient,
        crawler: PageCrawler | None = None,
        prober: SiteProber | None = None,
        performance: PageSpeedClient | None = None,
        reviewer: ContentReviewer | None = None,
        report_generator: ReportGenerator | None = None,
        validator: UrlValidator | None = None,
        url_timeout: float | None = None,
        top_issue_limit: int | None = None,
        default_language: str | None = None,
    ):
        self.store = store
        self.browser = browser
        self.storage = storage
        self.crawler = crawler or PageCrawler(browser, storage)
        self.prober = prober or SiteProber()
        self.performance = performance or PageSpeedClient()
        self.reviewer = reviewer or ContentReviewer()
        self.report_generator = report_generator
        self.validator = validator or UrlValidator()
        self.url_timeout = url_timeout or settings.SEO_AUDIT_URL_TIMEOUT
        self.top_issue_limit = top_issue_limit or settings.SEO_AUDIT_TOP_ISSUES
        self.default_language = default_language or settings.SEO_AUDIT_DEFAULT_LANGUAGE

    def validate(self, raw_input: str) -> UrlValidationResult:
        """Vet free-form URL text; a job should only start when ``valid``."""
        return self.validator.validate(raw_input)

    async def run(self, job_id: str) -> None:
        """
        Execute the audit. Never raises: every failure ends in a state
        transition on the job record.
        """
        try:
            await self._run(job_id)
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.exception(f"[Audit] Job {job_id} failed: {message}")
            try:
                await self.store.update(
                    job_id,
                    status=JobStatus.FAILED,
                    error=message,
                    completed_at=utcnow(),
                )
            except Exception as store_error:
                logger.error(f"[Audit] Could not mark job {job_id} as failed: {store_error}")

    async def _run(self, job_id: str) -> None:
        job = await self.store.get(job_id)
        if job is None:
            raise AuditJobNotFound(job_id)

        await self.store.update(job_id, status=JobStatus.RUNNING, started_at=utcnow())
        total = len(job.urls)
        logger.info(f"[Audit] Job {job_id} started: {total} URL(s), language={job.language}")

        results: list[UrlResult] = []
        async with self.browser:
            for index, url in enumerate(job.urls):
                result = UrlResult(url=url)
                results.append(result)
                try:
                    await self._process_url(job, index, result)
                except asyncio.TimeoutError:
                    logger.error(f"[Audit] {url} exceeded {self.url_timeout}s deadline")
                    result.mark_error(f"URL audit timed out after {self.url_timeout}s")
                except Exception as e:
                    logger.error(f"[Audit] {url} failed: {e}")
                    result.mark_error(str(e) or type(e).__name__)

                await self.store.update(job_id, results=results)

        all_issues: list[Issue] = [issue for r in results for issue in r.issues]

        if job.language != self.default_language and all_issues:
            await self._report(job_id, "", AuditStep.TRANSLATING, total, total)
            # Issues are shared with results, so translation shows up in both
            await self.reviewer.translate_issues(all_issues, job.language)

        executive_summary = await self.reviewer.summarize(results, all_issues, job.language)
        summary = build_summary(
            results,
            all_issues,
            executive_summary,
            top_issue_limit=self.top_issue_limit,
        )

        await self._report(job_id, "", AuditStep.REPORTING, total, total)
        report_path = await self._render_report(job, results, summary)

        await self.store.update(
            job_id,
            status=JobStatus.COMPLETED,
            results=results,
            summary=summary,
            report_path=report_path,
            progress=Progress(
                current_url="",
                current_step=AuditStep.COMPLETE,
                completed_urls=total,
                total_urls=total,
            ),
            completed_at=utcnow(),
        )
        logger.info(
            f"[Audit] Job {job_id} completed: score={summary.overall_score}, "
            f"{summary.successful_urls}/{summary.total_urls} URLs analyzed"
        )

    async def _process_url(self, job: AuditJob, index: int, result: UrlResult) -> None:
        """
        Crawl, analysis and probing must finish inside the URL deadline or
        the URL fails. PageSpeed and the content review only get what is
        left of it; running out there leaves their fields null.
        """
        url = result.url
        total = len(job.urls)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.url_timeout

        await asyncio.wait_for(
            self._crawl_and_analyze(job, index, result),
            timeout=self.url_timeout,
        )

        await self._report(job.id, url, AuditStep.PERFORMANCE, index, total)
        performance = await self._within_deadline(
            deadline, lambda: self.performance.audit(url), "PageSpeed audit", url
        )
        if performance:
            result.performance_scores = performance.scores
            result.core_web_vitals = performance.core_web_vitals

        await self._report(job.id, url, AuditStep.CONTENT, index, total)
        result.content_review = await self._within_deadline(
            deadline, lambda: self.reviewer.review(result.crawl, job.language), "Content review", url
        )

        logger.info(f"[Audit] {url}: {len(result.issues)} issues")

    async def _crawl_and_analyze(self, job: AuditJob, index: int, result: UrlResult) -> None:
        url = result.url
        total = len(job.urls)

        await self._report(job.id, url, AuditStep.CRAWLING, index, total)
        crawl = await self.crawler.crawl(url, job.id, index)
        result.crawl = crawl

        await self._report(job.id, url, AuditStep.ANALYZING, index, total)
        issues = analyze(crawl)
        probe = await self.prober.probe(url)
        result.has_sitemap = probe.has_sitemap
        result.has_robots_txt = probe.has_robots_txt
        issues.extend(probe.issues())
        result.issues = issues

    async def _within_deadline(self, deadline: float, start, label: str, url: str):
        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            logger.warning(f"[Audit] {label} skipped for {url}: URL deadline reached")
            return None
        try:
            return await asyncio.wait_for(start(), timeout=remaining)
        except asyncio.TimeoutError:
            logger.warning(f"[Audit] {label} for {url} cut off by the URL deadline")
            return None

    async def _report(self, job_id: str, url: str, step: str, completed: int, total: int) -> None:
        await self.store.update(
            job_id,
            progress=Progress(
                current_url=url,
                current_step=step,
                completed_urls=completed,
                total_urls=total,
            ),
        )

    async def _render_report(self, job, results, summary) -> str | None:
        if self.report_generator is None:
            return None
        try:
            return await self.report_generator.render(
                job.id, job.urls, results, summary, job.language
            )
        except Exception as e:
            logger.error(f"[Audit] Report generation failed for job {job.id}: {e}")
            return None


def build_orchestrator(
    store: JobStore,
    storage: BaseStorageClient | None = None,
) -> AuditOrchestrator:
    """Wire an orchestrator with the configured collaborators."""
    storage = storage or get_storage_client()
    return AuditOrchestrator(
        store=store,
        browser=BrowserSession(BrowserConfig.from_settings()),
        storage=storage,
        reviewer=ContentReviewer(LLMClient()),
        report_generator=ReportGenerator(storage),
    )
