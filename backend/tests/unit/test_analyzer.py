"""
Unit tests for the on-page rule analyzer.
"""
import pytest

from seoaudit.schemas.audit import Heading, IssueCategory, IssueSeverity, PageImage, PageLink
from seoaudit.services.analyzer import analyze

from factories import make_crawl


def titles(issues):
    return [issue.title for issue in issues]


def find(issues, title):
    return next(issue for issue in issues if issue.title == title)


class TestCleanPage:

    def test_clean_page_has_no_issues(self, clean_crawl):
        assert analyze(clean_crawl) == []

    def test_short_title_and_missing_description(self):
        """Title of 25 characters plus no meta description: exactly two issues."""
        crawl = make_crawl(title="A" * 25, meta_description="")

        issues = analyze(crawl)

        assert len(issues) == 2
        short = find(issues, "Title tag too short")
        assert short.severity == IssueSeverity.WARNING
        assert short.category == IssueCategory.META
        missing = find(issues, "Missing meta description")
        assert missing.severity == IssueSeverity.CRITICAL
        assert missing.category == IssueCategory.META


class TestMetaRules:

    def test_missing_title(self):
        issue = find(analyze(make_crawl(title="")), "Missing title tag")
        assert issue.severity == IssueSeverity.CRITICAL

    @pytest.mark.parametrize("length", [30, 60])
    def test_title_boundaries_do_not_trigger(self, length):
        assert analyze(make_crawl(title="t" * length)) == []

    def test_title_too_long(self):
        issues = analyze(make_crawl(title="t" * 61))
        assert titles(issues) == ["Title tag too long"]

    @pytest.mark.parametrize("length", [120, 160])
    def test_description_boundaries_do_not_trigger(self, length):
        assert analyze(make_crawl(meta_description="d" * length)) == []

    def test_description_too_short(self):
        assert titles(analyze(make_crawl(meta_description="d" * 119))) == [
            "Meta description too short"
        ]

    def test_description_too_long(self):
        assert titles(analyze(make_crawl(meta_description="d" * 161))) == [
            "Meta description too long"
        ]

    def test_missing_open_graph_tags_listed_in_one_issue(self):
        issues = analyze(make_crawl(og_tags={"og:title": "Acme"}))

        issue = find(issues, "Missing Open Graph tags")
        assert issue.severity == IssueSeverity.INFO
        assert issue.description == "Missing: og:description, og:image"
        assert len(issues) == 1


class TestContentRules:

    def test_missing_h1(self):
        crawl = make_crawl(headings=[Heading(level=2, text="Only H2")])
        issue = find(analyze(crawl), "Missing H1 heading")
        assert issue.severity == IssueSeverity.CRITICAL
        assert issue.category == IssueCategory.CONTENT

    def test_multiple_h1(self):
        crawl = make_crawl(headings=[Heading(level=1, text="One"), Heading(level=1, text="Two")])
        issue = find(analyze(crawl), "Multiple H1 headings")
        assert issue.severity == IssueSeverity.WARNING

    def test_only_first_heading_skip_reported(self):
        crawl = make_crawl(headings=[
            Heading(level=1, text="Title"),
            Heading(level=3, text="Skipped to three"),
            Heading(level=2, text="Back"),
            Heading(level=5, text="Skipped again"),
        ])

        skips = [i for i in analyze(crawl) if i.title == "Heading hierarchy skip"]

        assert len(skips) == 1
        assert skips[0].severity == IssueSeverity.INFO
        assert "H1 to H3" in skips[0].description

    def test_going_back_up_is_not_a_skip(self):
        crawl = make_crawl(headings=[
            Heading(level=1, text="Title"),
            Heading(level=2, text="A"),
            Heading(level=3, text="B"),
            Heading(level=2, text="C"),
        ])
        assert analyze(crawl) == []

    def test_word_count_boundary(self):
        assert analyze(make_crawl(word_count=300)) == []
        assert titles(analyze(make_crawl(word_count=299))) == ["Thin content"]

    def test_no_internal_links(self):
        crawl = make_crawl(links=[PageLink(href="https://other.com", is_external=True)])
        issue = find(analyze(crawl), "No internal links")
        assert issue.severity == IssueSeverity.WARNING

    def test_no_links_at_all_is_fine(self):
        assert analyze(make_crawl(links=[])) == []


class TestAccessibilityAndMobile:

    def test_images_missing_alt_summarized(self):
        crawl = make_crawl(images=[
            PageImage(src="/a.png", alt="A", has_alt=True),
            PageImage(src="/b.png", alt="", has_alt=False),
            PageImage(src="/c.png", alt="", has_alt=False),
        ])

        issues = analyze(crawl)

        assert titles(issues) == ["2 image(s) missing alt text"]
        assert issues[0].category == IssueCategory.ACCESSIBILITY
        assert issues[0].description == "Found 2 of 3 images without alt attributes."

    def test_missing_viewport(self):
        issue = find(analyze(make_crawl(has_viewport_meta=False)), "Missing viewport meta tag")
        assert issue.severity == IssueSeverity.CRITICAL
        assert issue.category == IssueCategory.MOBILE


class TestTechnicalRules:

    def test_missing_canonical(self):
        issue = find(analyze(make_crawl(canonical_url="")), "Missing canonical URL")
        assert issue.severity == IssueSeverity.WARNING
        assert issue.category == IssueCategory.TECHNICAL

    @pytest.mark.parametrize("code,title,severity", [
        (404, "HTTP 404 error", IssueSeverity.CRITICAL),
        (500, "HTTP 500 error", IssueSeverity.CRITICAL),
        (301, "HTTP 301 redirect", IssueSeverity.INFO),
    ])
    def test_status_codes(self, code, title, severity):
        issue = find(analyze(make_crawl(status_code=code)), title)
        assert issue.severity == severity

    def test_failed_navigation_status_zero_is_not_flagged(self):
        assert analyze(make_crawl(status_code=0)) == []

    def test_load_time_boundary(self):
        assert analyze(make_crawl(load_time_ms=5000)) == []
        issue = find(analyze(make_crawl(load_time_ms=7300)), "Slow page load")
        assert issue.category == IssueCategory.PERFORMANCE
        assert issue.description == "Page took 7.3s to load."

    def test_no_structured_data(self):
        issue = find(analyze(make_crawl(structured_data=[])), "No structured data")
        assert issue.severity == IssueSeverity.INFO

    @pytest.mark.parametrize("robots", ["noindex", "NOINDEX, follow", "index, NoIndex"])
    def test_noindex_case_insensitive(self, robots):
        issue = find(analyze(make_crawl(robots_meta=robots)), "Page is set to noindex")
        assert issue.severity == IssueSeverity.CRITICAL

    def test_rules_fire_independently(self):
        crawl = make_crawl(
            title="",
            meta_description="",
            headings=[],
            has_viewport_meta=False,
            canonical_url="",
            og_tags={},
            word_count=10,
            structured_data=[],
        )

        issues = analyze(crawl)

        assert set(titles(issues)) == {
            "Missing title tag",
            "Missing meta description",
            "Missing H1 heading",
            "Missing viewport meta tag",
            "Missing canonical URL",
            "Missing Open Graph tags",
            "Thin content",
            "No structured data",
        }
