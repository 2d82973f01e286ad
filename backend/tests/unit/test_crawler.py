"""
Unit tests for the Playwright page crawler.

Tests:
- DOM data and screenshots flow into the CrawlResult
- Navigation and screenshot failures degrade instead of raising
- Browser-level failures come back as an empty status-0 result
- Session lifecycle
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeout

from seoaudit.services.crawler import (
    BrowserConfig,
    BrowserSession,
    CrawlError,
    PageCrawler,
)

DOM_DATA = {
    "html": "<html><head><title>Widgets</title></head><body><h1>Widgets</h1></body></html>",
    "title": "Widgets",
    "meta_description": "All about widgets",
    "meta_keywords": "",
    "canonical_url": "https://example.com/",
    "og_tags": {"og:title": "Widgets"},
    "headings": [{"level": 1, "text": "Widgets"}],
    "images": [{"src": "/a.png", "alt": "", "has_alt": False}],
    "links": [{"href": "/about", "text": "About", "is_external": False}],
    "word_count": 2,
    "robots_meta": "",
    "has_viewport_meta": True,
    "structured_data": [],
}


def make_page(status=200, dom=None, goto_error=None, screenshot_error=None):
    page = MagicMock()
    if goto_error:
        page.goto = AsyncMock(side_effect=goto_error)
    else:
        response = MagicMock()
        response.status = status
        page.goto = AsyncMock(return_value=response)
    page.evaluate = AsyncMock(return_value=DOM_DATA if dom is None else dom)
    if screenshot_error:
        page.screenshot = AsyncMock(side_effect=screenshot_error)
    else:
        page.screenshot = AsyncMock(return_value=b"\x89PNG fake")
    return page


def make_context(page):
    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()
    return context


def started_session(*contexts) -> BrowserSession:
    """A session whose browser hands out the given contexts in order."""
    session = BrowserSession(BrowserConfig())
    session._browser = MagicMock()
    session._browser.new_context = AsyncMock(side_effect=list(contexts))
    return session


class TestCrawl:

    @pytest.mark.asyncio
    async def test_successful_crawl(self, storage):
        desktop = make_context(make_page())
        mobile = make_context(make_page())
        crawler = PageCrawler(started_session(desktop, mobile), storage)

        result = await crawler.crawl("https://example.com/", "job-1", 0)

        assert result.url == "https://example.com/"
        assert result.status_code == 200
        assert result.title == "Widgets"
        assert result.headings[0].level == 1
        assert result.images[0].has_alt is False
        assert result.has_viewport_meta is True
        assert result.load_time_ms >= 0
        assert result.desktop_screenshot_path == "seo-audits/job-1/0_desktop.png"
        assert result.mobile_screenshot_path == "seo-audits/job-1/0_mobile.png"
        assert storage.exists("seo-audits/job-1/0_desktop.png")
        desktop.close.assert_awaited_once()
        mobile.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_contexts_use_device_viewports(self, storage):
        session = started_session(make_context(make_page()), make_context(make_page()))

        await PageCrawler(session, storage).crawl("https://example.com/", "job-1", 3)

        desktop_call, mobile_call = session._browser.new_context.await_args_list
        assert desktop_call.kwargs["viewport"] == {"width": 1920, "height": 1080}
        assert desktop_call.kwargs["is_mobile"] is False
        assert mobile_call.kwargs["viewport"] == {"width": 375, "height": 812}
        assert mobile_call.kwargs["is_mobile"] is True
        assert "iPhone" in mobile_call.kwargs["user_agent"]

    @pytest.mark.asyncio
    async def test_navigation_timeout_still_extracts(self, storage):
        page = make_page(goto_error=PlaywrightTimeout("Timeout 30000ms exceeded"))
        crawler = PageCrawler(started_session(make_context(page), make_context(make_page())), storage)

        result = await crawler.crawl("https://slow.example.com/", "job-1", 1)

        assert result.status_code == 0
        assert result.title == "Widgets"
        page.evaluate.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_navigation_error_is_status_zero(self, storage):
        page = make_page(goto_error=RuntimeError("net::ERR_NAME_NOT_RESOLVED"), dom={})
        crawler = PageCrawler(started_session(make_context(page), make_context(make_page())), storage)

        result = await crawler.crawl("https://gone.example.com/", "job-1", 0)

        assert result.status_code == 0
        assert result.title == ""
        assert result.headings == []

    @pytest.mark.asyncio
    async def test_extraction_failure_gives_empty_page_data(self, storage):
        page = make_page()
        page.evaluate = AsyncMock(side_effect=RuntimeError("Execution context was destroyed"))
        crawler = PageCrawler(started_session(make_context(page), make_context(make_page())), storage)

        result = await crawler.crawl("https://example.com/", "job-1", 0)

        assert result.status_code == 200
        assert result.word_count == 0
        assert result.html == ""

    @pytest.mark.asyncio
    async def test_screenshot_failure_is_null_path(self, storage):
        page = make_page(screenshot_error=RuntimeError("Target closed"))
        crawler = PageCrawler(started_session(make_context(page), make_context(make_page())), storage)

        result = await crawler.crawl("https://example.com/", "job-1", 0)

        assert result.desktop_screenshot_path is None
        assert result.mobile_screenshot_path == "seo-audits/job-1/0_mobile.png"

    @pytest.mark.asyncio
    async def test_mobile_context_failure_is_null_path(self, storage):
        session = started_session(make_context(make_page()), RuntimeError("browser has crashed"))

        result = await PageCrawler(session, storage).crawl("https://example.com/", "job-1", 0)

        assert result.desktop_screenshot_path == "seo-audits/job-1/0_desktop.png"
        assert result.mobile_screenshot_path is None

    @pytest.mark.asyncio
    async def test_desktop_context_failure_returns_empty_result(self, storage):
        session = started_session(RuntimeError("browser has crashed"))

        result = await PageCrawler(session, storage).crawl("https://example.com/", "job-1", 0)

        assert result.url == "https://example.com/"
        assert result.status_code == 0
        assert result.title == ""
        assert result.desktop_screenshot_path is None
        assert result.mobile_screenshot_path is None

    @pytest.mark.asyncio
    async def test_context_closed_when_page_open_fails(self, storage):
        context = make_context(make_page())
        context.new_page = AsyncMock(side_effect=RuntimeError("no page"))
        crawler = PageCrawler(started_session(context), storage)

        result = await crawler.crawl("https://example.com/", "job-1", 0)

        assert result.status_code == 0
        context.close.assert_awaited_once()


class TestBrowserSession:

    @pytest.mark.asyncio
    async def test_new_context_before_start_raises(self):
        session = BrowserSession(BrowserConfig())

        with pytest.raises(CrawlError):
            await session.new_context(100, 100, "ua")

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        session = BrowserSession(BrowserConfig())
        browser = MagicMock()
        browser.close = AsyncMock()
        playwright = MagicMock()
        playwright.stop = AsyncMock()
        session._browser = browser
        session._playwright = playwright

        await session.stop()
        await session.stop()

        browser.close.assert_awaited_once()
        playwright.stop.assert_awaited_once()
        assert session.is_started is False

    @pytest.mark.asyncio
    async def test_stop_survives_close_errors(self):
        session = BrowserSession(BrowserConfig())
        session._browser = MagicMock()
        session._browser.close = AsyncMock(side_effect=RuntimeError("already gone"))

        await session.stop()

        assert session.is_started is False

    def test_config_from_settings(self):
        config = BrowserConfig.from_settings()

        assert config.nav_timeout_ms > 0
        assert config.browser_type == "chromium"
