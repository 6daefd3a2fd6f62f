"""Change source backed by a local git checkout.

Everything goes through the ``git`` executable; no git library is needed.
``-z`` output is used wherever paths are parsed so that file names with
spaces, tabs or non-ASCII characters survive intact.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from revlens_core.models import ChangeKind, ChangeRecord, CommitInfo
from revlens_core.sources.base import (
    BaseChangeSource,
    ChangeSourceError,
    RepositoryNotFoundError,
    RevisionNotFoundError,
)

logger = logging.getLogger(__name__)

_STATUS_KINDS = {
    "A": ChangeKind.ADDED,
    "C": ChangeKind.ADDED,
    "D": ChangeKind.DELETED,
    "M": ChangeKind.MODIFIED,
    "R": ChangeKind.RENAMED,
    "T": ChangeKind.MODIFIED,
}


def run_git(args: list[str], cwd: Path) -> str:
    """Run a git command and return its stdout.

    Raises:
        subprocess.CalledProcessError: the command exited non-zero
        ChangeSourceError: git is not installed
    """
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=True,
            cwd=cwd,
        )
    except FileNotFoundError as e:
        raise ChangeSourceError("git executable not found on PATH") from e
    return result.stdout


def parse_name_status(output: str) -> list[tuple[ChangeKind, str | None, str]]:
    """Parse ``git diff --name-status -z`` into (kind, old_path, path) tuples."""
    tokens = output.split("\0")
    entries = []
    i = 0
    while i < len(tokens):
        status = tokens[i]
        if not status:
            i += 1
            continue
        code = status[0]
        if code in ("R", "C"):
            old_path, path = tokens[i + 1], tokens[i + 2]
            i += 3
        else:
            old_path, path = None, tokens[i + 1]
            i += 2
        kind = _STATUS_KINDS.get(code, ChangeKind.MODIFIED)
        entries.append((kind, old_path if kind == ChangeKind.RENAMED else None, path))
    return entries


def parse_numstat(output: str) -> dict[str, tuple[int, int]]:
    """Parse ``git diff --numstat -z`` into {path: (added, deleted)}.

    Binary files report "-" for both counts; they are recorded as zero.
    """
    tokens = output.split("\0")
    stats: dict[str, tuple[int, int]] = {}
    i = 0
    while i < len(tokens):
        entry = tokens[i]
        if not entry:
            i += 1
            continue
        parts = entry.split("\t")
        added = int(parts[0]) if parts[0].isdigit() else 0
        deleted = int(parts[1]) if parts[1].isdigit() else 0
        if len(parts) >= 3 and parts[2]:
            path = parts[2]
            i += 1
        else:
            # Renames: "added\tdeleted\t" NUL old NUL new
            path = tokens[i + 2]
            i += 3
        stats[path] = (added, deleted)
    return stats


class LocalGitSource(BaseChangeSource):
    """Reads commits, branch diffs and working-tree files from a local repository."""

    def get_changes(self, repo_ref: str, revision: str) -> list[ChangeRecord]:
        root = self._repo_root(repo_ref)
        sha = self._resolve(root, revision)
        parents = run_git(["rev-list", "--parents", "-n", "1", sha], root).split()[1:]
        if len(parents) != 1:
            logger.warning("Commit %s has %d parents, expected 1", sha[:7], len(parents))
            return []
        return self._diff(root, parents[0], sha)

    def get_pull_request_changes(self, repo_ref: str, base_ref: str, head_ref: str) -> list[ChangeRecord]:
        root = self._repo_root(repo_ref)
        base = self._resolve(root, base_ref)
        head = self._resolve(root, head_ref)
        return self._diff(root, base, head)

    def get_file_content(self, repo_ref: str, path: str) -> str:
        full_path = Path(repo_ref) / path
        if not full_path.is_file():
            return ""
        return full_path.read_text(encoding="utf-8")

    def get_commit_info(self, repo_ref: str, revision: str) -> CommitInfo:
        root = self._repo_root(repo_ref)
        sha = self._resolve(root, revision)
        header = run_git(["show", "-s", "--format=%H%x00%an%x00%ae%x00%aI%x00%B", sha], root)
        commit_hash, author, email, date, message = (header.split("\0", 4) + [""] * 5)[:5]
        stats = parse_numstat(
            run_git(["diff-tree", "--root", "--no-commit-id", "-r", "-M", "-z", "--numstat", sha], root)
        )
        return CommitInfo(
            hash=commit_hash,
            author=author,
            email=email,
            date=date,
            message=message.strip(),
            modified_files=tuple(stats),
            lines_added=sum(added for added, _ in stats.values()),
            lines_deleted=sum(deleted for _, deleted in stats.values()),
        )

    def get_modified_files(self, repo_ref: str) -> list[str]:
        root = self._repo_root(repo_ref)
        tokens = run_git(["status", "--porcelain", "-z"], root).split("\0")
        paths = []
        i = 0
        while i < len(tokens):
            entry = tokens[i]
            if not entry:
                i += 1
                continue
            status, path = entry[:2], entry[3:]
            paths.append(path)
            # Renames and copies are followed by the original path.
            i += 2 if ("R" in status or "C" in status) else 1
        return paths

    def is_repository(self, repo_ref: str) -> bool:
        try:
            self._repo_root(repo_ref)
        except ChangeSourceError:
            return False
        return True

    def _repo_root(self, repo_ref: str) -> Path:
        path = Path(repo_ref)
        if not path.is_dir():
            raise RepositoryNotFoundError(f"Repository path does not exist: {repo_ref}")
        try:
            run_git(["rev-parse", "--git-dir"], path)
        except subprocess.CalledProcessError as e:
            raise RepositoryNotFoundError(f"Not a git repository: {repo_ref}") from e
        return path

    def _resolve(self, root: Path, ref: str) -> str:
        try:
            return run_git(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], root).strip()
        except subprocess.CalledProcessError as e:
            raise RevisionNotFoundError(f"Unknown revision {ref!r} in {root}") from e

    def _show(self, root: Path, revision: str, path: str) -> str:
        try:
            return run_git(["show", f"{revision}:{path}"], root)
        except subprocess.CalledProcessError:
            logger.debug("Could not read %s at %s", path, revision[:7])
            return ""

    def _diff(self, root: Path, base: str, head: str) -> list[ChangeRecord]:
        entries = parse_name_status(run_git(["diff", "--name-status", "-M", "-z", base, head], root))
        stats = parse_numstat(run_git(["diff", "--numstat", "-M", "-z", base, head], root))

        records = []
        for kind, old_path, path in entries:
            added, deleted = stats.get(path, (0, 0))
            pathspec = [old_path, path] if old_path else [path]
            records.append(
                ChangeRecord(
                    path=path,
                    kind=kind,
                    old_content="" if kind == ChangeKind.ADDED else self._show(root, base, old_path or path),
                    new_content="" if kind == ChangeKind.DELETED else self._show(root, head, path),
                    lines_added=added,
                    lines_deleted=deleted,
                    old_path=old_path,
                    patch=run_git(["diff", "-M", base, head, "--", *pathspec], root),
                )
            )
        return records
