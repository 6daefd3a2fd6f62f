"""Abstract change-source interface.

A change source knows how to enumerate the files touched by a commit or a
pair of refs, and how to fetch file content. The pipeline depends on
BaseChangeSource, not on a concrete backend, so a local checkout and a
GitHub repository are interchangeable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from revlens_core.models import ChangeRecord, CommitInfo


class ChangeSourceError(Exception):
    """The change source could not answer the request."""


class RepositoryNotFoundError(ChangeSourceError):
    """The repository reference does not point at a repository."""


class RevisionNotFoundError(ChangeSourceError):
    """A commit, branch or other revision reference could not be resolved."""


class BaseChangeSource(ABC):
    """Read-only access to a repository's history.

    Lookups of a missing repository or revision raise one of the
    ChangeSourceError subclasses above. A valid lookup that simply has
    nothing to report returns an empty list or string.
    """

    @abstractmethod
    def get_changes(self, repo_ref: str, revision: str) -> list[ChangeRecord]:
        """Return the files changed by ``revision`` relative to its parent."""

    @abstractmethod
    def get_pull_request_changes(self, repo_ref: str, base_ref: str, head_ref: str) -> list[ChangeRecord]:
        """Return the files that differ between ``base_ref`` and ``head_ref``."""

    @abstractmethod
    def get_file_content(self, repo_ref: str, path: str) -> str:
        """Return the current content of ``path``, or "" if it does not exist."""

    @abstractmethod
    def get_commit_info(self, repo_ref: str, revision: str) -> CommitInfo:
        """Return author, message and line statistics for ``revision``."""

    def get_modified_files(self, repo_ref: str) -> list[str]:
        """Return paths with uncommitted modifications.

        Sources without a working tree return an empty list.
        """
        return []

    @abstractmethod
    def is_repository(self, repo_ref: str) -> bool:
        """Return True if ``repo_ref`` points at a reachable repository."""
