"""
Sitemap / robots.txt prober.

Two independent HEAD checks against the domain root of an audited URL.
"""

import asyncio
import logging
from dataclasses import dataclass
from urllib.parse import urlsplit

import httpx

from seoaudit.config import settings
from seoaudit.schemas.audit import Issue, IssueCategory, IssueSeverity

logger = logging.getLogger(__name__)

MISSING_SITEMAP_ISSUE = {
    "severity": IssueSeverity.WARNING,
    "category": IssueCategory.TECHNICAL,
    "title": "No sitemap.xml found",
    "description": "No accessible sitemap.xml at the domain root.",
    "recommendation": "Create a sitemap.xml and submit it to search engines.",
}

MISSING_ROBOTS_ISSUE = {
    "severity": IssueSeverity.INFO,
    "category": IssueCategory.TECHNICAL,
    "title": "No robots.txt found",
    "description": "No robots.txt file at the domain root.",
    "recommendation": "Create a robots.txt to guide search engine crawlers.",
}


@dataclass
class ProbeResult:
    has_sitemap: bool
    has_robots_txt: bool

    def issues(self) -> list[Issue]:
        found = []
        if not self.has_sitemap:
            found.append(Issue(**MISSING_SITEMAP_ISSUE))
        if not self.has_robots_txt:
            found.append(Issue(**MISSING_ROBOTS_ISSUE))
        return found


def domain_root(url: str) -> str:
    parsed = urlsplit(url)
    return f"{parsed.scheme}://{parsed.netloc}"


class SiteProber:
    """HEAD-checks /sitemap.xml and /robots.txt concurrently."""

    def __init__(
        self,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout or settings.SEO_AUDIT_PROBE_TIMEOUT
        self._transport = transport

    async def probe(self, url: str) -> ProbeResult:
        root = domain_root(url)
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            has_sitemap, has_robots = await asyncio.gather(
                self._exists(client, f"{root}/sitemap.xml"),
                self._exists(client, f"{root}/robots.txt"),
            )
        return ProbeResult(has_sitemap=has_sitemap, has_robots_txt=has_robots)

    async def _exists(self, client: httpx.AsyncClient, target: str) -> bool:
        try:
            # httpx timeouts are per phase; this bounds the whole request
            response = await asyncio.wait_for(client.head(target), timeout=self.timeout)
            return response.is_success
        except (httpx.HTTPError, asyncio.TimeoutError) as e:
            logger.info(f"[Prober] {target} not reachable: {type(e).__name__}")
            return False
