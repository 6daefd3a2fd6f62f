"""Combine one file's findings into a Review."""

from __future__ import annotations

from typing import Iterable

from revlens_core.models import SEVERITY_RANK, Issue, IssueCategory, Review, ReviewType, Severity, Suggestion

# Checked in order; the first category present decides the review type.
_TYPE_PRIORITY = (
    (IssueCategory.SECURITY, ReviewType.SECURITY),
    (IssueCategory.PERFORMANCE, ReviewType.PERFORMANCE),
    (IssueCategory.MAINTAINABILITY, ReviewType.MAINTAINABILITY),
)


def determine_review_type(issues: Iterable[Issue]) -> ReviewType:
    categories = {i.category for i in issues}
    for category, review_type in _TYPE_PRIORITY:
        if category in categories:
            return review_type
    return ReviewType.CODE_QUALITY


def determine_overall_severity(issues: Iterable[Issue]) -> Severity:
    """Highest severity among ``issues``; INFO when there are none."""
    return max((i.severity for i in issues), key=SEVERITY_RANK.__getitem__, default=Severity.INFO)


def assemble_review(
    file_path: str,
    review_text: str,
    issues: Iterable[Issue],
    suggestions: Iterable[Suggestion],
) -> Review:
    issues = tuple(issues)
    return Review(
        file_path=file_path,
        review_text=review_text,
        type=determine_review_type(issues),
        severity=determine_overall_severity(issues),
        issues=issues,
        suggestions=tuple(suggestions),
    )
