"""
Content Reviewer

LLM-backed, best-effort content features:
- review(): qualitative scores and recommendations for one page
- translate_issues(): batch translation of issue text, in place
- summarize(): executive narrative for the whole audit, with a
  deterministic fallback that needs no LLM
None of these raise; failures mean "feature absent".
"""

import asyncio
import json
import logging
import math
import re
from typing import Any

from bs4 import BeautifulSoup

from seoaudit.config import settings
from seoaudit.integrations.llm import LLMClient
from seoaudit.schemas.audit import (
    ContentReview,
    CrawlResult,
    Issue,
    IssueSeverity,
    UrlResult,
    UrlStatus,
)

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {
    "en": "English",
    "hu": "Hungarian",
    "de": "German",
    "fr": "French",
    "es": "Spanish",
    "it": "Italian",
    "pt": "Portuguese",
    "nl": "Dutch",
    "pl": "Polish",
    "cs": "Czech",
    "sk": "Slovak",
    "ro": "Romanian",
    "hr": "Croatian",
    "sr": "Serbian",
    "bg": "Bulgarian",
    "ru": "Russian",
    "uk": "Ukrainian",
    "ja": "Japanese",
    "zh": "Chinese",
    "ko": "Korean",
}

MAX_BODY_CHARS = 8000
MAX_RECOMMENDATIONS = 10

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")
_TEXT_FIELDS = ("title", "description", "recommendation")


def get_language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, code)


def truncate_body_text(html: str, max_words: int) -> str:
    """Visible text of the page, capped to a word budget."""
    soup = BeautifulSoup(html or "", "lxml")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    words = soup.get_text(" ").split()
    if len(words) > max_words:
        return " ".join(words[:max_words]) + "..."
    return " ".join(words)


def clamp_score(value: Any) -> int:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"non-finite score: {value!r}")
    return min(10, max(1, int(round(number))))


def fallback_summary(results: list[UrlResult], all_issues: list[Issue]) -> str:
    """Templated summary built from counts only."""
    critical = sum(1 for i in all_issues if i.severity == IssueSeverity.CRITICAL)
    warning = sum(1 for i in all_issues if i.severity == IssueSeverity.WARNING)
    successful = sum(1 for r in results if r.status == UrlStatus.SUCCESS)

    if critical > 0:
        verdict = (
            "**Immediate action required**: critical issues found that may impact "
            "search engine visibility."
        )
    else:
        verdict = "No critical issues found."

    return (
        "## SEO Audit Summary\n\n"
        f"Audited **{len(results)}** URLs, **{successful}** successfully analyzed.\n\n"
        f"Found **{len(all_issues)}** total issues: **{critical}** critical, "
        f"**{warning}** warnings.\n\n"
        f"{verdict}"
    )


class ContentReviewer:
    """Wraps the LLM client with per-call deadlines and tolerant parsing."""

    def __init__(
        self,
        llm: LLMClient | None = None,
        review_timeout: float | None = None,
        translate_timeout: float | None = None,
        summary_timeout: float | None = None,
        max_body_words: int | None = None,
        default_language: str | None = None,
    ):
        self.llm = llm or LLMClient()
        self.review_timeout = review_timeout or settings.LLM_REVIEW_TIMEOUT
        self.translate_timeout = translate_timeout or settings.LLM_TRANSLATE_TIMEOUT
        self.summary_timeout = summary_timeout or settings.LLM_SUMMARY_TIMEOUT
        self.max_body_words = max_body_words or settings.LLM_MAX_BODY_WORDS
        self.default_language = default_language or settings.SEO_AUDIT_DEFAULT_LANGUAGE

    async def _ask(self, prompt: str, timeout: float, max_tokens: int) -> str:
        return await asyncio.wait_for(
            self.llm.complete(prompt, max_tokens=max_tokens),
            timeout=timeout,
        )

    # =========================================================================
    # Page review
    # =========================================================================
    async def review(self, crawl: CrawlResult, language: str) -> ContentReview | None:
        """Score one page's content; None when the LLM is absent or fails."""
        if not self.llm.is_configured:
            return None

        prompt = self._build_review_prompt(crawl, language)
        try:
            text = await self._ask(prompt, self.review_timeout, max_tokens=1024)
        except asyncio.TimeoutError:
            logger.warning(f"[LLM] Content review timed out for {crawl.url}")
            return None
        except Exception as e:
            logger.error(f"[LLM] Content review failed for {crawl.url}: {e}")
            return None

        return self._parse_review(text, crawl.url)

    def _build_review_prompt(self, crawl: CrawlResult, language: str) -> str:
        lang_name = get_language_name(language)
        body_text = truncate_body_text(crawl.html, self.max_body_words)
        headings_text = "\n".join(f"{'#' * h.level} {h.text}" for h in crawl.headings)

        return f"""Analyze this web page for SEO content quality. Write your "summary" and "recommendations" in {lang_name}. Respond ONLY with valid JSON matching this schema:
{{
  "contentQuality": <1-10>,
  "readability": <1-10>,
  "keywordRelevance": <1-10>,
  "recommendations": ["<recommendation in {lang_name}>", ...],
  "summary": "<2-3 sentence summary in {lang_name}>"
}}

Page URL: {crawl.url}
Title: {crawl.title}
Meta Description: {crawl.meta_description}
Word Count: {crawl.word_count}

Headings:
{headings_text}

Body Text (truncated):
{body_text[:MAX_BODY_CHARS]}"""

    def _parse_review(self, text: str, url: str) -> ContentReview | None:
        match = _JSON_OBJECT_RE.search(text or "")
        if not match:
            logger.warning(f"[LLM] No JSON object in content review for {url}")
            return None

        try:
            parsed = json.loads(match.group(0))
            recommendations = parsed.get("recommendations")
            summary = parsed.get("summary")
            return ContentReview(
                content_quality=clamp_score(parsed["contentQuality"]),
                readability=clamp_score(parsed["readability"]),
                keyword_relevance=clamp_score(parsed["keywordRelevance"]),
                recommendations=(
                    [str(r) for r in recommendations[:MAX_RECOMMENDATIONS]]
                    if isinstance(recommendations, list) else []
                ),
                summary=summary if isinstance(summary, str) else "",
            )
        except (ValueError, KeyError, TypeError, AttributeError, OverflowError) as e:
            logger.warning(f"[LLM] Unparseable content review for {url}: {e}")
            return None

    # =========================================================================
    # Issue translation
    # =========================================================================
    async def translate_issues(self, issues: list[Issue], language: str) -> None:
        """
        Translate issue text in place with one batch call.

        Issues sharing a title are translated once. On any failure every
        issue is left exactly as it was.
        """
        if language == self.default_language or not issues:
            return
        if not self.llm.is_configured:
            return

        unique: dict[str, dict[str, str]] = {}
        for issue in issues:
            if issue.title not in unique:
                unique[issue.title] = {field: getattr(issue, field) for field in _TEXT_FIELDS}
        entries = list(unique.values())

        lang_name = get_language_name(language)
        prompt = f"""Translate these SEO audit findings into {lang_name}. Keep technical terms (HTML, meta, sitemap, robots.txt, h1, alt, etc.) untranslated. Respond ONLY with a valid JSON array matching the input structure.

Input:
{json.dumps(entries, indent=2, ensure_ascii=False)}

Return the same array with title, description, and recommendation translated to {lang_name}. Keep the exact same order and count."""

        try:
            text = await self._ask(prompt, self.translate_timeout, max_tokens=4096)
        except asyncio.TimeoutError:
            logger.warning(f"[LLM] Issue translation to {language} timed out")
            return
        except Exception as e:
            logger.error(f"[LLM] Issue translation to {language} failed: {e}")
            return

        translated = self._parse_translations(text, len(entries))
        if translated is None:
            return

        translation_map = {entry["title"]: t for entry, t in zip(entries, translated)}
        for issue in issues:
            t = translation_map.get(issue.title)
            if t:
                issue.title = t["title"]
                issue.description = t["description"]
                issue.recommendation = t["recommendation"]

        logger.info(f"[LLM] Translated {len(entries)} unique issues to {language}")

    def _parse_translations(self, text: str, expected: int) -> list[dict[str, str]] | None:
        match = _JSON_ARRAY_RE.search(text or "")
        if not match:
            logger.warning("[LLM] No JSON array in translation response")
            return None
        try:
            translated = json.loads(match.group(0))
        except ValueError as e:
            logger.warning(f"[LLM] Unparseable translation response: {e}")
            return None

        if not isinstance(translated, list) or len(translated) != expected:
            logger.warning(
                f"[LLM] Translation count mismatch: expected {expected}, "
                f"got {len(translated) if isinstance(translated, list) else 'non-list'}"
            )
            return None

        for item in translated:
            if not isinstance(item, dict) or not all(
                isinstance(item.get(field), str) for field in _TEXT_FIELDS
            ):
                logger.warning("[LLM] Translation entry missing text fields")
                return None
        return translated

    # =========================================================================
    # Executive summary
    # =========================================================================
    async def summarize(
        self,
        results: list[UrlResult],
        all_issues: list[Issue],
        language: str,
    ) -> str:
        """Markdown executive summary; falls back to a templated one."""
        if not self.llm.is_configured:
            return fallback_summary(results, all_issues)

        prompt = self._build_summary_prompt(results, all_issues, language)
        try:
            text = await self._ask(prompt, self.summary_timeout, max_tokens=2048)
        except asyncio.TimeoutError:
            logger.warning("[LLM] Executive summary timed out, using fallback")
            return fallback_summary(results, all_issues)
        except Exception as e:
            logger.error(f"[LLM] Executive summary failed, using fallback: {e}")
            return fallback_summary(results, all_issues)

        return text.strip() or fallback_summary(results, all_issues)

    def _build_summary_prompt(
        self,
        results: list[UrlResult],
        all_issues: list[Issue],
        language: str,
    ) -> str:
        lang_name = get_language_name(language)
        counts = {
            severity: sum(1 for i in all_issues if i.severity == severity)
            for severity in IssueSeverity
        }

        url_lines = []
        for r in results:
            line = f"- {r.url}: {len(r.issues)} issues, {'FAILED' if r.status == UrlStatus.ERROR else 'OK'}"
            if r.performance_scores:
                perf = r.performance_scores.performance
                seo = r.performance_scores.seo
                line += f", Performance: {perf if perf is not None else 'N/A'}, SEO: {seo if seo is not None else 'N/A'}"
            url_lines.append(line)

        top_critical = "\n".join(
            f"- [{i.category.value}] {i.title}: {i.description}"
            for i in [i for i in all_issues if i.severity == IssueSeverity.CRITICAL][:5]
        )

        return f"""Write a concise executive summary (in markdown) for an SEO audit of {len(results)} URLs.

IMPORTANT: Write the entire summary in {lang_name}.

Issue breakdown: {counts[IssueSeverity.CRITICAL]} critical, {counts[IssueSeverity.WARNING]} warnings, {counts[IssueSeverity.INFO]} informational

URL summaries:
{chr(10).join(url_lines)}

Top critical issues:
{top_critical}

Write 2-3 paragraphs in {lang_name} covering:
1. Overall SEO health assessment
2. Key areas that need immediate attention
3. Recommended next steps

Keep it under 300 words. Use markdown formatting."""
