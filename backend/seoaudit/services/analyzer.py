"""
Rule Analyzer - static on-page SEO checks for one crawled page.

Rule groups:
1. Meta (title, meta description, Open Graph)
2. Content (H1, heading hierarchy, word count, internal links)
3. Accessibility (image alt text)
4. Mobile (viewport)
5. Technical (canonical, status code, structured data, noindex)
6. Performance (load time)

Pure: no I/O, every rule independent, thresholds are strict comparisons.
"""

import logging

from seoaudit.schemas.audit import CrawlResult, Issue, IssueCategory, IssueSeverity

logger = logging.getLogger(__name__)

TITLE_MIN_LENGTH = 30
TITLE_MAX_LENGTH = 60
META_DESCRIPTION_MIN_LENGTH = 120
META_DESCRIPTION_MAX_LENGTH = 160
THIN_CONTENT_WORDS = 300
SLOW_LOAD_MS = 5000
REQUIRED_OG_TAGS = ("og:title", "og:description", "og:image")


class RuleAnalyzer:
    """Runs the on-page rule set against a CrawlResult."""

    def __init__(self, crawl: CrawlResult):
        self.crawl = crawl
        self.issues: list[Issue] = []

    def run_all_checks(self) -> list[Issue]:
        self._check_title()
        self._check_meta_description()
        self._check_h1()
        self._check_heading_hierarchy()
        self._check_image_alt()
        self._check_viewport()
        self._check_canonical()
        self._check_open_graph()
        self._check_word_count()
        self._check_status_code()
        self._check_load_time()
        self._check_structured_data()
        self._check_internal_links()
        self._check_noindex()

        logger.debug(f"[Analyzer] {self.crawl.url}: {len(self.issues)} issues")
        return self.issues

    def _add(
        self,
        severity: IssueSeverity,
        category: IssueCategory,
        title: str,
        description: str,
        recommendation: str,
    ):
        self.issues.append(Issue(
            severity=severity,
            category=category,
            title=title,
            description=description,
            recommendation=recommendation,
        ))

    # =========================================================================
    # Meta
    # =========================================================================
    def _check_title(self):
        title = self.crawl.title
        if not title:
            self._add(
                IssueSeverity.CRITICAL, IssueCategory.META,
                "Missing title tag",
                "The page has no <title> tag.",
                f"Add a descriptive title tag between {TITLE_MIN_LENGTH}-{TITLE_MAX_LENGTH} characters.",
            )
        elif len(title) < TITLE_MIN_LENGTH:
            self._add(
                IssueSeverity.WARNING, IssueCategory.META,
                "Title tag too short",
                f'Title is only {len(title)} characters: "{title}"',
                f"Aim for {TITLE_MIN_LENGTH}-{TITLE_MAX_LENGTH} characters for optimal SEO.",
            )
        elif len(title) > TITLE_MAX_LENGTH:
            self._add(
                IssueSeverity.WARNING, IssueCategory.META,
                "Title tag too long",
                f"Title is {len(title)} characters and may be truncated in search results.",
                f"Keep title under {TITLE_MAX_LENGTH} characters.",
            )

    def _check_meta_description(self):
        description = self.crawl.meta_description
        if not description:
            self._add(
                IssueSeverity.CRITICAL, IssueCategory.META,
                "Missing meta description",
                "No meta description tag found.",
                f"Add a meta description between {META_DESCRIPTION_MIN_LENGTH}-"
                f"{META_DESCRIPTION_MAX_LENGTH} characters.",
            )
        elif len(description) < META_DESCRIPTION_MIN_LENGTH:
            self._add(
                IssueSeverity.WARNING, IssueCategory.META,
                "Meta description too short",
                f"Meta description is only {len(description)} characters.",
                f"Aim for {META_DESCRIPTION_MIN_LENGTH}-{META_DESCRIPTION_MAX_LENGTH} "
                "characters for optimal display.",
            )
        elif len(description) > META_DESCRIPTION_MAX_LENGTH:
            self._add(
                IssueSeverity.WARNING, IssueCategory.META,
                "Meta description too long",
                f"Meta description is {len(description)} characters and may be truncated.",
                f"Keep meta description under {META_DESCRIPTION_MAX_LENGTH} characters.",
            )

    def _check_open_graph(self):
        missing = [tag for tag in REQUIRED_OG_TAGS if not self.crawl.og_tags.get(tag)]
        if missing:
            self._add(
                IssueSeverity.INFO, IssueCategory.META,
                "Missing Open Graph tags",
                f"Missing: {', '.join(missing)}",
                "Add Open Graph tags for better social media sharing.",
            )

    # =========================================================================
    # Content
    # =========================================================================
    def _check_h1(self):
        h1_count = sum(1 for h in self.crawl.headings if h.level == 1)
        if h1_count == 0:
            self._add(
                IssueSeverity.CRITICAL, IssueCategory.CONTENT,
                "Missing H1 heading",
                "No H1 heading found on the page.",
                "Add exactly one H1 heading that describes the main topic.",
            )
        elif h1_count > 1:
            self._add(
                IssueSeverity.WARNING, IssueCategory.CONTENT,
                "Multiple H1 headings",
                f"Found {h1_count} H1 headings. Best practice is to have exactly one.",
                "Use only one H1 per page. Use H2-H6 for sub-sections.",
            )

    def _check_heading_hierarchy(self):
        # Only the first skip is reported.
        prev_level = 0
        for heading in self.crawl.headings:
            if prev_level > 0 and heading.level > prev_level + 1:
                self._add(
                    IssueSeverity.INFO, IssueCategory.CONTENT,
                    "Heading hierarchy skip",
                    f'Heading jumps from H{prev_level} to H{heading.level}: "{heading.text[:50]}"',
                    "Use heading levels in sequential order (H1 → H2 → H3, etc.).",
                )
                return
            prev_level = heading.level

    def _check_word_count(self):
        if self.crawl.word_count < THIN_CONTENT_WORDS:
            self._add(
                IssueSeverity.WARNING, IssueCategory.CONTENT,
                "Thin content",
                f"Page has only {self.crawl.word_count} words.",
                f"Aim for at least {THIN_CONTENT_WORDS} words of quality content for better rankings.",
            )

    def _check_internal_links(self):
        links = self.crawl.links
        if links and not any(not link.is_external for link in links):
            self._add(
                IssueSeverity.WARNING, IssueCategory.CONTENT,
                "No internal links",
                "Page has no internal links. Internal linking helps SEO.",
                "Add links to other relevant pages on your site.",
            )

    # =========================================================================
    # Accessibility & Mobile
    # =========================================================================
    def _check_image_alt(self):
        missing = sum(1 for img in self.crawl.images if not img.has_alt)
        if missing:
            self._add(
                IssueSeverity.WARNING, IssueCategory.ACCESSIBILITY,
                f"{missing} image(s) missing alt text",
                f"Found {missing} of {len(self.crawl.images)} images without alt attributes.",
                "Add descriptive alt text to all images for accessibility and SEO.",
            )

    def _check_viewport(self):
        if not self.crawl.has_viewport_meta:
            self._add(
                IssueSeverity.CRITICAL, IssueCategory.MOBILE,
                "Missing viewport meta tag",
                "No viewport meta tag found. Mobile rendering will be affected.",
                'Add <meta name="viewport" content="width=device-width, initial-scale=1">.',
            )

    # =========================================================================
    # Technical & Performance
    # =========================================================================
    def _check_canonical(self):
        if not self.crawl.canonical_url:
            self._add(
                IssueSeverity.WARNING, IssueCategory.TECHNICAL,
                "Missing canonical URL",
                "No canonical link element found.",
                'Add <link rel="canonical"> to prevent duplicate content issues.',
            )

    def _check_status_code(self):
        code = self.crawl.status_code
        if code >= 400:
            self._add(
                IssueSeverity.CRITICAL, IssueCategory.TECHNICAL,
                f"HTTP {code} error",
                f"Page returned status code {code}.",
                "Fix the HTTP error to ensure the page is accessible.",
            )
        elif 300 <= code < 400:
            self._add(
                IssueSeverity.INFO, IssueCategory.TECHNICAL,
                f"HTTP {code} redirect",
                f"Page returned redirect status {code}.",
                "Ensure redirects are intentional and update links to point to the final URL.",
            )

    def _check_load_time(self):
        if self.crawl.load_time_ms > SLOW_LOAD_MS:
            self._add(
                IssueSeverity.WARNING, IssueCategory.PERFORMANCE,
                "Slow page load",
                f"Page took {self.crawl.load_time_ms / 1000:.1f}s to load.",
                "Optimize images, minimize JavaScript, and consider CDN usage.",
            )

    def _check_structured_data(self):
        if not self.crawl.structured_data:
            self._add(
                IssueSeverity.INFO, IssueCategory.TECHNICAL,
                "No structured data",
                "No JSON-LD structured data found.",
                "Add Schema.org structured data for rich search results.",
            )

    def _check_noindex(self):
        if "noindex" in self.crawl.robots_meta.lower():
            self._add(
                IssueSeverity.CRITICAL, IssueCategory.TECHNICAL,
                "Page is set to noindex",
                'Robots meta tag contains "noindex", so search engines will not index this page.',
                "Remove noindex if this page should appear in search results.",
            )


def analyze(crawl: CrawlResult) -> list[Issue]:
    """Return every issue the rule set finds on the crawled page."""
    return RuleAnalyzer(crawl).run_all_checks()
