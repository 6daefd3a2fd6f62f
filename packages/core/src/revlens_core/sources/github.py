"""Change source backed by the GitHub API (PyGithub).

``repo_ref`` is an ``owner/name`` string. Change records fetch both sides
pinned to the refs being compared (the merge base on the old side);
``get_file_content`` reads the default branch.
"""

from __future__ import annotations

import logging

from github import Github, GithubException, UnknownObjectException

from revlens_core.models import ChangeKind, ChangeRecord, CommitInfo
from revlens_core.sources.base import (
    BaseChangeSource,
    ChangeSourceError,
    RepositoryNotFoundError,
    RevisionNotFoundError,
)

logger = logging.getLogger(__name__)

_STATUS_KINDS = {
    "added": ChangeKind.ADDED,
    "copied": ChangeKind.ADDED,
    "removed": ChangeKind.DELETED,
    "renamed": ChangeKind.RENAMED,
}


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def get_pull_requests(repo, state: str = "open"):
    return repo.get_pulls(state=state)


def get_incremental_files(repo, base_sha: str, head_sha: str):
    """Return the comparison of two refs using GitHub's compare API."""
    return repo.compare(base_sha, head_sha)


class GitHubSource(BaseChangeSource):
    def __init__(self, token: str | None = None, client: Github | None = None):
        self._gh = client if client is not None else Github(token)

    def get_changes(self, repo_ref: str, revision: str) -> list[ChangeRecord]:
        repo = self._repo(repo_ref)
        commit = self._commit(repo, revision)
        if len(commit.parents) != 1:
            logger.warning("Commit %s has %d parents, expected 1", commit.sha[:7], len(commit.parents))
            return []
        parent_sha = commit.parents[0].sha
        return [self._to_record(repo, f, parent_sha, commit.sha) for f in commit.files]

    def get_pull_request_changes(self, repo_ref: str, base_ref: str, head_ref: str) -> list[ChangeRecord]:
        repo = self._repo(repo_ref)
        try:
            comparison = get_incremental_files(repo, base_ref, head_ref)
        except UnknownObjectException as e:
            raise RevisionNotFoundError(f"Could not compare {base_ref}...{head_ref} in {repo_ref}") from e
        except GithubException as e:
            raise ChangeSourceError(f"GitHub compare failed for {repo_ref}: {e}") from e
        base_sha = comparison.merge_base_commit.sha
        return [self._to_record(repo, f, base_sha, head_ref) for f in comparison.files]

    def get_file_content(self, repo_ref: str, path: str) -> str:
        repo = self._repo(repo_ref)
        return self._content(repo, path, repo.default_branch)

    def get_commit_info(self, repo_ref: str, revision: str) -> CommitInfo:
        repo = self._repo(repo_ref)
        commit = self._commit(repo, revision)
        git_commit = commit.commit
        author = git_commit.author
        return CommitInfo(
            hash=commit.sha,
            author=author.name if author else "",
            email=author.email if author else "",
            date=author.date.isoformat() if author and author.date else "",
            message=git_commit.message or "",
            modified_files=tuple(f.filename for f in commit.files),
            lines_added=commit.stats.additions,
            lines_deleted=commit.stats.deletions,
        )

    def is_repository(self, repo_ref: str) -> bool:
        try:
            self._repo(repo_ref)
        except ChangeSourceError:
            return False
        return True

    def list_pull_requests(self, repo_ref: str, state: str = "open") -> list:
        return list(get_pull_requests(self._repo(repo_ref), state=state))

    def pull_request_refs(self, repo_ref: str, pr_number: int) -> tuple[str, str]:
        """Resolve a pull request number to its (base SHA, head SHA)."""
        repo = self._repo(repo_ref)
        try:
            pr = get_pull(repo, pr_number)
        except UnknownObjectException as e:
            raise RevisionNotFoundError(f"PR #{pr_number} not found in {repo_ref}") from e
        return pr.base.sha, pr.head.sha

    def _repo(self, repo_ref: str):
        try:
            return self._gh.get_repo(repo_ref)
        except UnknownObjectException as e:
            raise RepositoryNotFoundError(f"GitHub repository not found: {repo_ref}") from e
        except GithubException as e:
            raise ChangeSourceError(f"Could not open {repo_ref}: {e}") from e

    def _commit(self, repo, revision: str):
        try:
            return repo.get_commit(revision)
        except UnknownObjectException as e:
            raise RevisionNotFoundError(f"Unknown revision {revision!r}") from e
        except GithubException as e:
            # GitHub answers 422 for refs that are syntactically invalid.
            if e.status == 422:
                raise RevisionNotFoundError(f"Unknown revision {revision!r}") from e
            raise ChangeSourceError(f"Could not fetch commit {revision!r}: {e}") from e

    def _content(self, repo, path: str, ref: str) -> str:
        try:
            contents = repo.get_contents(path, ref=ref)
        except GithubException as e:
            logger.debug("Could not fetch %s at %s: %s", path, ref, e)
            return ""
        if isinstance(contents, list):
            return ""  # a directory
        # Files over 1 MB come back with encoding "none" and no inline content.
        if contents.encoding != "base64":
            logger.debug("Skipping %s at %s (content encoding %r)", path, ref, contents.encoding)
            return ""
        return contents.decoded_content.decode("utf-8", errors="replace")

    def _to_record(self, repo, file, base_sha: str, head_sha: str) -> ChangeRecord:
        kind = _STATUS_KINDS.get(file.status, ChangeKind.MODIFIED)
        old_path = file.previous_filename if kind == ChangeKind.RENAMED else None
        return ChangeRecord(
            path=file.filename,
            kind=kind,
            old_content="" if kind == ChangeKind.ADDED else self._content(repo, old_path or file.filename, base_sha),
            new_content="" if kind == ChangeKind.DELETED else self._content(repo, file.filename, head_sha),
            lines_added=file.additions,
            lines_deleted=file.deletions,
            old_path=old_path,
            patch=file.patch or "",
        )
