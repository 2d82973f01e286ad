"""
Score aggregation.

Issue deductions per bucket, optionally blended 50/50 with averaged
performance-tool scores. Pure and order-independent.
"""

from seoaudit.core.rounding import round_half_up
from seoaudit.schemas.audit import (
    CategoryScores,
    Issue,
    IssueCategory,
    IssueCounts,
    IssueSeverity,
    Summary,
    UrlResult,
    UrlStatus,
)

SEVERITY_DEDUCTIONS = {
    IssueSeverity.CRITICAL: 15,
    IssueSeverity.WARNING: 5,
    IssueSeverity.INFO: 1,
}

SEVERITY_RANK = {
    IssueSeverity.CRITICAL: 0,
    IssueSeverity.WARNING: 1,
    IssueSeverity.INFO: 2,
}

CATEGORY_BUCKETS = {
    IssueCategory.META: "technical",
    IssueCategory.MOBILE: "technical",
    IssueCategory.TECHNICAL: "technical",
    IssueCategory.CONTENT: "content",
    IssueCategory.PERFORMANCE: "performance",
    IssueCategory.ACCESSIBILITY: "accessibility",
}

# tool score -> bucket it blends into
BLENDED_SCORES = {
    "performance": "performance",
    "accessibility": "accessibility",
    "seo": "technical",
}

DEFAULT_TOP_ISSUES = 10


def _average(values: list[int | None]) -> int | None:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return round_half_up(sum(present) / len(present))


def calculate_category_scores(
    all_issues: list[Issue],
    results: list[UrlResult],
) -> CategoryScores:
    """Deduct per issue (floored at 0), then blend with tool averages."""
    deductions = {"technical": 0, "content": 0, "performance": 0, "accessibility": 0}
    for issue in all_issues:
        deductions[CATEGORY_BUCKETS[issue.category]] += SEVERITY_DEDUCTIONS[issue.severity]

    # Summed first so the floor does not depend on issue order
    scores = {bucket: max(0, 100 - total) for bucket, total in deductions.items()}

    tool_scores = [r.performance_scores for r in results if r.performance_scores]
    if tool_scores:
        for field, bucket in BLENDED_SCORES.items():
            avg = _average([getattr(s, field) for s in tool_scores])
            if avg is not None:
                scores[bucket] = round_half_up((scores[bucket] + avg) / 2)

    return CategoryScores(**scores)


def calculate_overall_score(category_scores: CategoryScores) -> int:
    return round_half_up(
        (
            category_scores.technical
            + category_scores.content
            + category_scores.performance
            + category_scores.accessibility
        ) / 4
    )


def select_top_issues(issues: list[Issue], limit: int = DEFAULT_TOP_ISSUES) -> list[Issue]:
    """First occurrence per title, stable-sorted by severity, capped."""
    unique: dict[str, Issue] = {}
    for issue in issues:
        unique.setdefault(issue.title, issue)
    ranked = sorted(unique.values(), key=lambda i: SEVERITY_RANK[i.severity])
    return [issue.model_copy() for issue in ranked[:limit]]


def count_issues(issues: list[Issue]) -> IssueCounts:
    return IssueCounts(
        critical=sum(1 for i in issues if i.severity == IssueSeverity.CRITICAL),
        warning=sum(1 for i in issues if i.severity == IssueSeverity.WARNING),
        info=sum(1 for i in issues if i.severity == IssueSeverity.INFO),
    )


def build_summary(
    results: list[UrlResult],
    all_issues: list[Issue],
    executive_summary: str,
    top_issue_limit: int = DEFAULT_TOP_ISSUES,
) -> Summary:
    category_scores = calculate_category_scores(all_issues, results)
    return Summary(
        overall_score=calculate_overall_score(category_scores),
        category_scores=category_scores,
        top_issues=select_top_issues(all_issues, top_issue_limit),
        executive_summary=executive_summary,
        total_issues=count_issues(all_issues),
        total_urls=len(results),
        successful_urls=sum(1 for r in results if r.status == UrlStatus.SUCCESS),
    )
