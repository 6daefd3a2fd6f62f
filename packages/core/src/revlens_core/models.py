"""Review data model.

Every record is frozen and holds tuples rather than lists, so once the
pipeline hands a ReviewResult to a caller nothing can drift out of sync
with its summary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import PurePosixPath


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class ChangeKind(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class AnalysisKind(str, Enum):
    """The three lenses every file is analysed through."""

    GENERAL = "general"
    SECURITY = "security"
    QUALITY = "quality"


class IssueCategory(str, Enum):
    SECURITY = "security"
    PERFORMANCE = "performance"
    BUG_RISK = "bug_risk"
    CODE_STYLE = "code_style"
    MAINTAINABILITY = "maintainability"
    DOCUMENTATION = "documentation"
    TESTING = "testing"
    ARCHITECTURE = "architecture"


class Severity(str, Enum):
    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ReviewType(str, Enum):
    SECURITY = "security"
    CODE_QUALITY = "code_quality"
    PERFORMANCE = "performance"
    MAINTAINABILITY = "maintainability"
    GENERAL = "general"


SEVERITY_RANK = {
    Severity.INFO: 0,
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}

_LANGUAGES = {
    ".cs": "C#",
    ".js": "JavaScript",
    ".ts": "TypeScript",
    ".py": "Python",
    ".java": "Java",
    ".cpp": "C++",
    ".cc": "C++",
    ".cxx": "C++",
    ".c": "C",
    ".go": "Go",
    ".rs": "Rust",
    ".php": "PHP",
    ".rb": "Ruby",
    ".sql": "SQL",
    ".html": "HTML",
    ".css": "CSS",
    ".json": "JSON",
    ".xml": "XML",
    ".yaml": "YAML",
    ".yml": "YAML",
}


def file_extension(path: str) -> str:
    """Lower-cased extension including the dot, or "" when there is none."""
    return PurePosixPath(path.replace("\\", "/")).suffix.lower()


def language_for(path: str) -> str:
    return _LANGUAGES.get(file_extension(path), "Unknown")


@dataclass(frozen=True)
class ChangeRecord:
    """One file's change between two revisions, as reported by a change source."""

    path: str
    kind: ChangeKind
    old_content: str = ""
    new_content: str = ""
    lines_added: int = 0
    lines_deleted: int = 0
    old_path: str | None = None  # set for renames
    patch: str = ""

    @property
    def extension(self) -> str:
        return file_extension(self.path)

    @property
    def language(self) -> str:
        return language_for(self.path)


@dataclass(frozen=True)
class CommitInfo:
    hash: str = ""
    author: str = ""
    email: str = ""
    date: str = ""  # ISO-8601
    message: str = ""
    modified_files: tuple[str, ...] = ()
    lines_added: int = 0
    lines_deleted: int = 0


@dataclass(frozen=True)
class FileTarget:
    """A selected file with the content that will be sent for analysis."""

    path: str
    content: str

    @property
    def language(self) -> str:
        return language_for(self.path)


@dataclass(frozen=True)
class Issue:
    title: str
    description: str
    category: IssueCategory
    severity: Severity
    line_number: int | None = None
    code_snippet: str = ""
    rule: str = ""


@dataclass(frozen=True)
class Suggestion:
    title: str
    description: str
    recommended_change: str = ""
    line_number: int | None = None
    code_before: str = ""
    code_after: str = ""


@dataclass(frozen=True)
class Review:
    """The assembled review of one file."""

    file_path: str
    review_text: str
    type: ReviewType
    severity: Severity
    issues: tuple[Issue, ...] = ()
    suggestions: tuple[Suggestion, ...] = ()
    created_at: str = field(default_factory=_utcnow)


@dataclass(frozen=True)
class ReviewSummary:
    total_files: int = 0
    files_with_issues: int = 0
    total_issues: int = 0
    critical_issues: int = 0
    high_issues: int = 0
    medium_issues: int = 0
    low_issues: int = 0
    info_issues: int = 0
    security_issues: int = 0
    performance_issues: int = 0
    quality_issues: int = 0
    overall_score: str = ""
    top_recommendations: tuple[str, ...] = ()


@dataclass(frozen=True)
class ReviewResult:
    """Terminal artifact of one pipeline run.

    Only ReviewPipeline builds these, always deriving ``summary`` from the
    same ``reviews`` tuple it stores.
    """

    reviews: tuple[Review, ...] = ()
    summary: ReviewSummary = field(default_factory=ReviewSummary)
    repo_path: str = ""
    commit_hash: str | None = None
    duration_seconds: float = 0.0
    created_at: str = field(default_factory=_utcnow)
