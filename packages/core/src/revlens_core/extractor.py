"""Heuristic extraction of findings from prose analyses.

The backend answers in free text, so there is no grammar to parse. The
keyword extractor below is a presence detector: a lens that mentions its
marker word yields exactly one finding, however many problems the text
describes. It sits behind the FindingExtractor protocol so a structured
extractor can replace it without touching assembly or aggregation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Protocol

from revlens_core.models import Issue, IssueCategory, Severity, Suggestion

if TYPE_CHECKING:
    from revlens_core.dispatcher import AnalysisBundle

SECURITY_TITLE = "Security Vulnerability Detected"
COMPLEXITY_TITLE = "High Complexity Detected"
SUGGESTION_TITLE = "General Improvement"


@dataclass(frozen=True)
class Findings:
    issues: tuple[Issue, ...] = field(default_factory=tuple)
    suggestions: tuple[Suggestion, ...] = field(default_factory=tuple)


class FindingExtractor(Protocol):
    def extract(self, bundle: AnalysisBundle) -> Findings: ...


def _contains(text: str, keyword: str) -> bool:
    return keyword in text.lower()


def matching_lines(text: str, keywords: Iterable[str], limit: int) -> str:
    """Join the first ``limit`` lines mentioning any keyword (case-insensitive)."""
    keywords = [k.lower() for k in keywords]
    hits = [line for line in text.split("\n") if any(k in line.lower() for k in keywords)]
    return " ".join(hits[:limit]).strip()


def extract_security_issues(text: str) -> list[Issue]:
    if not _contains(text, "critical"):
        return []
    return [
        Issue(
            title=SECURITY_TITLE,
            description=matching_lines(text, ("critical", "vulnerability"), limit=3),
            category=IssueCategory.SECURITY,
            severity=Severity.CRITICAL,
            rule="Security Analysis",
        )
    ]


def extract_quality_issues(text: str) -> list[Issue]:
    if not _contains(text, "complexity"):
        return []
    return [
        Issue(
            title=COMPLEXITY_TITLE,
            description=matching_lines(text, ("complexity", "maintainability"), limit=2),
            category=IssueCategory.MAINTAINABILITY,
            severity=Severity.MEDIUM,
            rule="Code Quality Analysis",
        )
    ]


def extract_issues(security_text: str, quality_text: str) -> list[Issue]:
    return extract_security_issues(security_text) + extract_quality_issues(quality_text)


def extract_suggestions(general_text: str) -> list[Suggestion]:
    if not (_contains(general_text, "suggestion") or _contains(general_text, "improve")):
        return []
    return [
        Suggestion(
            title=SUGGESTION_TITLE,
            description=matching_lines(general_text, ("suggestion", "improve", "recommend"), limit=2),
            recommended_change="See description for details",
        )
    ]


class KeywordFindingExtractor:
    """Default extractor: one finding per lens, triggered by marker keywords."""

    def extract(self, bundle: AnalysisBundle) -> Findings:
        return Findings(
            issues=tuple(extract_issues(bundle.security, bundle.quality)),
            suggestions=tuple(extract_suggestions(bundle.general)),
        )
