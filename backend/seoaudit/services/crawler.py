"""
Page Crawler

Headless browser crawl of a single URL using Playwright:
- desktop context: navigation, DOM extraction, desktop screenshot
- mobile context: mobile screenshot only
Page-level failures (navigation timeout, extraction error, screenshot
error) degrade the result instead of raising.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeout,
    async_playwright,
)

from seoaudit.config import settings
from seoaudit.integrations.storage import AuditStoragePaths, BaseStorageClient
from seoaudit.schemas.audit import CrawlResult

logger = logging.getLogger(__name__)

DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
MOBILE_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)

# Runs inside the page; returns plain JSON.
EXTRACT_DOM_SCRIPT = """
(maxHtmlChars) => {
    const getMetaContent = (name) => {
        const el = document.querySelector(`meta[name="${name}"]`) ||
            document.querySelector(`meta[property="${name}"]`);
        return (el && el.getAttribute('content')) || '';
    };

    const ogTags = {};
    document.querySelectorAll('meta[property^="og:"]').forEach(el => {
        const prop = el.getAttribute('property');
        const content = el.getAttribute('content');
        if (prop && content) ogTags[prop] = content;
    });

    const headings = [];
    document.querySelectorAll('h1, h2, h3, h4, h5, h6').forEach(el => {
        headings.push({
            level: parseInt(el.tagName.charAt(1)),
            text: (el.textContent || '').trim().substring(0, 200),
        });
    });

    const images = [];
    document.querySelectorAll('img').forEach(el => {
        const alt = el.getAttribute('alt') || '';
        images.push({
            src: el.getAttribute('src') || '',
            alt: alt,
            has_alt: el.hasAttribute('alt') && alt.trim().length > 0,
        });
    });

    const links = [];
    const currentHost = window.location.hostname;
    document.querySelectorAll('a[href]').forEach(el => {
        const href = el.getAttribute('href') || '';
        let isExternal = false;
        try {
            isExternal = new URL(href, window.location.href).hostname !== currentHost;
        } catch (e) {}
        links.push({
            href: href,
            text: (el.textContent || '').trim().substring(0, 200),
            is_external: isExternal,
        });
    });

    const bodyText = (document.body && document.body.innerText) || '';
    const wordCount = bodyText.split(/\\s+/).filter(w => w.length > 0).length;

    const structuredData = [];
    document.querySelectorAll('script[type="application/ld+json"]').forEach(el => {
        try {
            structuredData.push(JSON.parse(el.textContent || ''));
        } catch (e) {}
    });

    const canonicalEl = document.querySelector('link[rel="canonical"]');

    return {
        html: document.documentElement.outerHTML.substring(0, maxHtmlChars),
        title: document.title || '',
        meta_description: getMetaContent('description'),
        meta_keywords: getMetaContent('keywords'),
        canonical_url: (canonicalEl && canonicalEl.getAttribute('href')) || '',
        og_tags: ogTags,
        headings: headings,
        images: images,
        links: links,
        word_count: wordCount,
        robots_meta: getMetaContent('robots'),
        has_viewport_meta: !!document.querySelector('meta[name="viewport"]'),
        structured_data: structuredData,
    };
}
"""


class CrawlError(RuntimeError):
    """The browser itself is unusable; the page was never opened."""


@dataclass
class BrowserConfig:
    """Configuration for the headless browser."""
    nav_timeout_ms: int = 30000
    wait_until: str = "networkidle"  # load, domcontentloaded, networkidle
    desktop_width: int = 1920
    desktop_height: int = 1080
    desktop_user_agent: str = DESKTOP_USER_AGENT
    mobile_width: int = 375
    mobile_height: int = 812
    mobile_user_agent: str = MOBILE_USER_AGENT
    browser_type: str = "chromium"  # chromium, firefox, webkit
    headless: bool = True
    ignore_https_errors: bool = True
    max_html_chars: int = 100_000

    @classmethod
    def from_settings(cls) -> "BrowserConfig":
        return cls(
            nav_timeout_ms=settings.SEO_AUDIT_NAV_TIMEOUT_MS,
            headless=settings.SEO_AUDIT_HEADLESS,
        )


class BrowserSession:
    """
    One Playwright browser shared by every crawl of a job.

    Acquire with ``async with`` at job start; leaving the block closes the
    browser on every exit path.
    """

    def __init__(self, config: BrowserConfig | None = None):
        self.config = config or BrowserConfig.from_settings()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()

    @property
    def is_started(self) -> bool:
        return self._browser is not None

    async def start(self):
        """Start the browser instance."""
        if self._browser is not None:
            return

        logger.info(f"[Crawler] Starting Playwright {self.config.browser_type} browser")
        self._playwright = await async_playwright().start()
        launcher = getattr(self._playwright, self.config.browser_type)
        self._browser = await launcher.launch(headless=self.config.headless)

    async def stop(self):
        """Stop the browser instance. Safe to call more than once."""
        try:
            if self._browser:
                await self._browser.close()
        except Exception as e:
            logger.warning(f"[Crawler] Error closing browser: {e}")
        finally:
            self._browser = None

        try:
            if self._playwright:
                await self._playwright.stop()
        except Exception as e:
            logger.warning(f"[Crawler] Error stopping Playwright: {e}")
        finally:
            self._playwright = None

        logger.info("[Crawler] Browser stopped")

    async def new_context(
        self,
        width: int,
        height: int,
        user_agent: str,
        is_mobile: bool = False,
    ) -> BrowserContext:
        """Open an isolated context with the given viewport and user agent."""
        if self._browser is None:
            raise CrawlError("Browser session is not started")
        try:
            return await self._browser.new_context(
                viewport={"width": width, "height": height},
                user_agent=user_agent,
                is_mobile=is_mobile,
                ignore_https_errors=self.config.ignore_https_errors,
            )
        except Exception as e:
            raise CrawlError(f"Could not open browser context: {e}") from e


class PageCrawler:
    """Crawls one URL into a CrawlResult plus two screenshots."""

    def __init__(self, browser: BrowserSession, storage: BaseStorageClient):
        self.browser = browser
        self.storage = storage
        self.config = browser.config

    async def crawl(self, url: str, job_id: str, url_index: int) -> CrawlResult:
        """
        Crawl a single page.

        Args:
            url: Vetted URL to load
            job_id: Audit job id, used for screenshot storage keys
            url_index: Position of the URL in the job, used for screenshot names

        Returns:
            CrawlResult; status_code is 0 when navigation failed or the
            browser could not open the page at all
        """
        try:
            context = await self.browser.new_context(
                self.config.desktop_width,
                self.config.desktop_height,
                self.config.desktop_user_agent,
            )
        except CrawlError as e:
            logger.error(f"[Crawler] Desktop context failed for {url}: {e}")
            return CrawlResult(url=url)

        try:
            try:
                page = await context.new_page()
            except Exception as e:
                logger.error(f"[Crawler] Could not open page for {url}: {e}")
                return CrawlResult(url=url)

            start_time = time.monotonic()
            status_code = await self._navigate(page, url)
            load_time_ms = int((time.monotonic() - start_time) * 1000)

            dom_data = await self._extract_dom_data(page, url)
            desktop_path = await self._take_screenshot(
                page, url, AuditStoragePaths.screenshot(job_id, url_index, "desktop")
            )
        finally:
            await self._close_context(context)

        mobile_path = await self._capture_mobile(url, job_id, url_index)

        return CrawlResult.model_validate({
            **dom_data,
            "url": url,
            "status_code": status_code,
            "load_time_ms": load_time_ms,
            "desktop_screenshot_path": desktop_path,
            "mobile_screenshot_path": mobile_path,
        })

    async def _navigate(self, page: Page, url: str) -> int:
        try:
            response = await page.goto(
                url,
                wait_until=self.config.wait_until,
                timeout=self.config.nav_timeout_ms,
            )
            return response.status if response else 0
        except PlaywrightTimeout:
            logger.warning(f"[Crawler] Navigation timeout for {url}, extracting partial DOM")
        except Exception as e:
            logger.warning(f"[Crawler] Navigation failed for {url}: {e}")
        return 0

    async def _extract_dom_data(self, page: Page, url: str) -> dict[str, Any]:
        try:
            data = await page.evaluate(EXTRACT_DOM_SCRIPT, self.config.max_html_chars)
            return data if isinstance(data, dict) else {}
        except Exception as e:
            logger.warning(f"[Crawler] DOM extraction failed for {url}: {e}")
            return {}

    async def _take_screenshot(self, page: Page, url: str, key: str) -> str | None:
        try:
            image = await page.screenshot(full_page=False)
            return self.storage.upload_bytes(key, image, content_type="image/png")
        except Exception as e:
            logger.warning(f"[Crawler] Screenshot failed for {url}: {e}")
            return None

    async def _capture_mobile(self, url: str, job_id: str, url_index: int) -> str | None:
        try:
            context = await self.browser.new_context(
                self.config.mobile_width,
                self.config.mobile_height,
                self.config.mobile_user_agent,
                is_mobile=True,
            )
        except CrawlError as e:
            logger.warning(f"[Crawler] Mobile context failed for {url}: {e}")
            return None

        try:
            page = await context.new_page()
            await self._navigate(page, url)
            return await self._take_screenshot(
                page, url, AuditStoragePaths.screenshot(job_id, url_index, "mobile")
            )
        except Exception as e:
            logger.warning(f"[Crawler] Mobile capture failed for {url}: {e}")
            return None
        finally:
            await self._close_context(context)

    async def _close_context(self, context: BrowserContext):
        try:
            await context.close()
        except Exception as e:
            logger.debug(f"[Crawler] Context close error: {e}")
