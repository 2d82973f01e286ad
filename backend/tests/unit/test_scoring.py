"""
Unit tests for score aggregation.

Tests:
- Issue deductions per bucket and the floor at zero
- Blending with averaged performance-tool scores
- Top issue selection and issue counts
"""
import random

import pytest

from seoaudit.core.rounding import round_half_up
from seoaudit.schemas.audit import (
    CategoryScores,
    IssueCategory,
    IssueSeverity,
    UrlResult,
    UrlStatus,
)
from seoaudit.services.scoring import (
    build_summary,
    calculate_category_scores,
    calculate_overall_score,
    count_issues,
    select_top_issues,
)

from factories import make_issue, make_result


class TestDeductions:
    """Issue-derived scores."""

    def test_no_issues_scores_100(self):
        scores = calculate_category_scores([], [])

        assert scores == CategoryScores(technical=100, content=100, performance=100, accessibility=100)

    def test_severity_weights(self):
        issues = [
            make_issue(IssueSeverity.CRITICAL, IssueCategory.CONTENT, "a"),
            make_issue(IssueSeverity.WARNING, IssueCategory.PERFORMANCE, "b"),
            make_issue(IssueSeverity.INFO, IssueCategory.ACCESSIBILITY, "c"),
        ]

        scores = calculate_category_scores(issues, [])

        assert scores.content == 85
        assert scores.performance == 95
        assert scores.accessibility == 99
        assert scores.technical == 100

    def test_meta_mobile_and_technical_share_a_bucket(self):
        issues = [
            make_issue(IssueSeverity.WARNING, IssueCategory.META, "a"),
            make_issue(IssueSeverity.CRITICAL, IssueCategory.MOBILE, "b"),
            make_issue(IssueSeverity.INFO, IssueCategory.TECHNICAL, "c"),
        ]

        scores = calculate_category_scores(issues, [])

        assert scores.technical == 100 - 5 - 15 - 1

    def test_floor_at_zero(self):
        issues = [
            make_issue(IssueSeverity.CRITICAL, IssueCategory.CONTENT, f"issue {i}")
            for i in range(50)
        ]

        scores = calculate_category_scores(issues, [])

        assert scores.content == 0
        assert calculate_overall_score(scores) == 75

    def test_order_does_not_matter(self):
        issues = [
            make_issue(severity, category, f"{severity.value}-{category.value}-{n}")
            for severity in IssueSeverity
            for category in IssueCategory
            for n in range(3)
        ]
        results = [make_result(performance=40, seo=70), make_result(accessibility=55)]
        expected = calculate_category_scores(issues, results)

        rng = random.Random(7)
        for _ in range(5):
            shuffled = issues[:]
            rng.shuffle(shuffled)
            assert calculate_category_scores(shuffled, results) == expected


class TestBlending:
    """Blending with performance-tool scores."""

    def test_all_tool_scores_null_means_no_blending(self):
        issues = [make_issue(IssueSeverity.WARNING, IssueCategory.PERFORMANCE, "slow")]
        results = [
            make_result(performance=None, accessibility=None, best_practices=None, seo=None),
            make_result(performance=None, accessibility=None, best_practices=None, seo=None),
        ]

        assert calculate_category_scores(issues, results) == calculate_category_scores(issues, [])

    def test_blend_is_half_and_half(self):
        results = [make_result(performance=60, accessibility=80, best_practices=90, seo=50)]

        scores = calculate_category_scores([], results)

        assert scores.performance == 80
        assert scores.accessibility == 90
        assert scores.technical == 75
        assert scores.content == 100

    def test_averages_ignore_urls_missing_a_metric(self):
        results = [
            make_result(performance=40),
            make_result(performance=None),
            make_result(performance=60),
            make_result(),  # no tool result at all
        ]

        scores = calculate_category_scores([], results)

        assert scores.performance == 75  # (100 + 50) / 2
        assert scores.accessibility == 100
        assert scores.technical == 100

    def test_half_values_round_up(self):
        results = [make_result(performance=51)]

        scores = calculate_category_scores([], results)

        assert scores.performance == 76  # 75.5

    def test_failed_urls_without_scores_do_not_count(self):
        failed = UrlResult(url="https://example.com/broken")
        failed.mark_error("boom")

        scores = calculate_category_scores([], [failed, make_result(seo=80)])

        assert scores.technical == 90


class TestRounding:

    @pytest.mark.parametrize("value,expected", [(0.5, 1), (1.5, 2), (2.5, 3), (2.4999, 2), (87.5, 88)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestTopIssues:

    def test_dedupes_by_title_and_sorts_by_severity(self):
        issues = [
            make_issue(IssueSeverity.INFO, IssueCategory.TECHNICAL, "No structured data"),
            make_issue(IssueSeverity.WARNING, IssueCategory.META, "Title tag too short"),
            make_issue(IssueSeverity.CRITICAL, IssueCategory.META, "Missing meta description"),
            make_issue(IssueSeverity.WARNING, IssueCategory.META, "Title tag too short"),
            make_issue(IssueSeverity.WARNING, IssueCategory.TECHNICAL, "Missing canonical URL"),
        ]

        top = select_top_issues(issues)

        assert [i.title for i in top] == [
            "Missing meta description",
            "Title tag too short",
            "Missing canonical URL",
            "No structured data",
        ]

    def test_capped(self):
        issues = [make_issue(title=f"issue {n}") for n in range(25)]

        assert len(select_top_issues(issues)) == 10
        assert len(select_top_issues(issues, limit=3)) == 3

    def test_counts(self):
        issues = [
            make_issue(IssueSeverity.CRITICAL, title="a"),
            make_issue(IssueSeverity.CRITICAL, title="a"),
            make_issue(IssueSeverity.INFO, title="b"),
        ]

        counts = count_issues(issues)

        assert (counts.critical, counts.warning, counts.info) == (2, 0, 1)


class TestSummary:

    def test_build_summary(self):
        failed = UrlResult(url="https://example.com/broken")
        failed.mark_error("Navigation failed")
        ok = make_result(performance=90)
        ok.issues = [make_issue(IssueSeverity.CRITICAL, IssueCategory.META, "Missing title tag")]

        summary = build_summary([ok, failed], ok.issues, "All good.")

        assert summary.total_urls == 2
        assert summary.successful_urls == 1
        assert failed.status == UrlStatus.ERROR
        assert summary.category_scores.technical == 85
        assert summary.category_scores.performance == 95
        assert summary.overall_score == 95  # (85 + 100 + 95 + 100) / 4
        assert summary.executive_summary == "All good."
        assert summary.total_issues.critical == 1
        assert [i.title for i in summary.top_issues] == ["Missing title tag"]
