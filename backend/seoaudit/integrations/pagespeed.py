"""
Google PageSpeed Insights API client.

Runs a Lighthouse audit remotely and reduces it to four category scores
and five Core Web Vitals. Never raises: any failure or timeout yields None.
"""
import asyncio
import logging
from typing import Any

import httpx

from seoaudit.config import settings
from seoaudit.core.rounding import round_half_up
from seoaudit.schemas.audit import CoreWebVitals, PerformanceAudit, PerformanceScores

logger = logging.getLogger(__name__)


class PageSpeedClient:
    """HTTP client for Google PageSpeed Insights API."""

    BASE_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"

    CATEGORIES = ["performance", "accessibility", "best-practices", "seo"]

    # audit id per vital
    VITAL_AUDITS = {
        "lcp": "largest-contentful-paint",
        "fid": "max-potential-fid",
        "cls": "cumulative-layout-shift",
        "fcp": "first-contentful-paint",
        "ttfb": "server-response-time",
    }

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        strategy: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.PAGESPEED_API_KEY
        self.timeout = timeout or settings.PAGESPEED_TIMEOUT
        self.strategy = strategy or settings.PAGESPEED_STRATEGY
        self._transport = transport

    async def audit(self, url: str) -> PerformanceAudit | None:
        """
        Audit a URL with PageSpeed Insights.

        The tool call is raced against a hard deadline; the loser is abandoned.

        Args:
            url: The URL to analyze

        Returns:
            PerformanceAudit, or None if the tool is unavailable, failed or timed out
        """
        if not self.api_key:
            logger.warning("[PSI] PageSpeed API key not configured, skipping performance audit")
            return None

        try:
            data = await asyncio.wait_for(self._fetch(url), timeout=self.timeout)
            return self._parse_response(data)
        except asyncio.TimeoutError:
            logger.error(f"[PSI] Timeout analyzing {url} after {self.timeout}s")
        except httpx.HTTPStatusError as e:
            error_msg = f"HTTP {e.response.status_code}"
            if e.response.status_code == 429:
                error_msg = "Rate limit exceeded"
            elif e.response.status_code == 400:
                error_msg = "Invalid URL or request"
            logger.error(f"[PSI] Error analyzing {url}: {error_msg}")
        except Exception as e:
            logger.error(f"[PSI] Unexpected error analyzing {url}: {e}")
        return None

    async def _fetch(self, url: str) -> dict[str, Any]:
        params: list[tuple[str, str]] = [
            ("url", url),
            ("strategy", self.strategy),
            ("key", self.api_key),
        ]
        params.extend(("category", cat) for cat in self.CATEGORIES)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            logger.info(f"[PSI] Analyzing {url} ({self.strategy})")
            response = await client.get(self.BASE_URL, params=params)
            response.raise_for_status()
            return response.json()

    def _parse_response(self, data: dict) -> PerformanceAudit | None:
        """Parse PSI API response into scores and vitals."""
        lighthouse = data.get("lighthouseResult")
        if not lighthouse:
            logger.warning("[PSI] Response has no lighthouseResult")
            return None

        categories = lighthouse.get("categories") or {}
        audits = lighthouse.get("audits") or {}

        scores = PerformanceScores(
            performance=self._category_score(categories, "performance"),
            accessibility=self._category_score(categories, "accessibility"),
            best_practices=self._category_score(categories, "best-practices"),
            seo=self._category_score(categories, "seo"),
        )

        vitals = CoreWebVitals(**{
            name: (audits.get(audit_id) or {}).get("numericValue")
            for name, audit_id in self.VITAL_AUDITS.items()
        })

        return PerformanceAudit(scores=scores, core_web_vitals=vitals)

    @staticmethod
    def _category_score(categories: dict, name: str) -> int | None:
        """Raw 0-1 score to 0-100; absent category stays None."""
        score = (categories.get(name) or {}).get("score")
        if score is None:
            return None
        return round_half_up(float(score) * 100)
