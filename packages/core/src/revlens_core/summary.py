"""Aggregate per-file reviews into a scored summary."""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Sequence

from revlens_core.models import Issue, IssueCategory, Review, ReviewSummary, Severity

TOP_RECOMMENDATIONS = 5

PERFECT_SCORE_LABEL = "A+ (Excellent)"

SEVERITY_PENALTY = {
    Severity.CRITICAL: 25,
    Severity.HIGH: 15,
    Severity.MEDIUM: 10,
    Severity.LOW: 5,
    Severity.INFO: 2,
}

# (minimum score, label), highest band first.
SCORE_BANDS = (
    (90, "A (Excellent)"),
    (80, "B (Good)"),
    (70, "C (Fair)"),
    (60, "D (Poor)"),
)
FAILING_LABEL = "F (Needs Significant Improvement)"

_QUALITY_CATEGORIES = {IssueCategory.CODE_STYLE, IssueCategory.MAINTAINABILITY}


def calculate_score(issues: Iterable[Issue]) -> int:
    """100 minus a fixed penalty per issue severity. Not clamped at zero."""
    return 100 - sum(SEVERITY_PENALTY[i.severity] for i in issues)


def score_label(issues: Sequence[Issue]) -> str:
    if not issues:
        return PERFECT_SCORE_LABEL
    score = calculate_score(issues)
    for minimum, label in SCORE_BANDS:
        if score >= minimum:
            return label
    return FAILING_LABEL


def top_recommendations(reviews: Iterable[Review], limit: int = TOP_RECOMMENDATIONS) -> list[str]:
    """Titles of the first ``limit`` suggestions, in review order then suggestion order."""
    titles = [s.title for r in reviews for s in r.suggestions]
    return titles[:limit]


def summarize(reviews: Sequence[Review]) -> ReviewSummary:
    all_issues = [i for r in reviews for i in r.issues]
    severities = Counter(i.severity for i in all_issues)
    categories = Counter(i.category for i in all_issues)

    return ReviewSummary(
        total_files=len(reviews),
        files_with_issues=sum(1 for r in reviews if r.issues),
        total_issues=len(all_issues),
        critical_issues=severities[Severity.CRITICAL],
        high_issues=severities[Severity.HIGH],
        medium_issues=severities[Severity.MEDIUM],
        low_issues=severities[Severity.LOW],
        info_issues=severities[Severity.INFO],
        security_issues=categories[IssueCategory.SECURITY],
        performance_issues=categories[IssueCategory.PERFORMANCE],
        quality_issues=sum(categories[c] for c in _QUALITY_CATEGORIES),
        overall_score=score_label(all_issues),
        top_recommendations=tuple(top_recommendations(reviews)),
    )
