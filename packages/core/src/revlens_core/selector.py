"""Change selection: decide which files get analysed and resolve their content."""

from __future__ import annotations

import fnmatch
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from revlens_core.models import ChangeKind, ChangeRecord, FileTarget, file_extension
from revlens_core.sources.base import ChangeSourceError

logger = logging.getLogger(__name__)

DEFAULT_SKIP_EXTENSIONS = frozenset(
    {
        ".exe",
        ".dll",
        ".bin",
        ".obj",
        ".png",
        ".jpg",
        ".jpeg",
        ".gif",
        ".bmp",
        ".ico",
        ".pdf",
        ".zip",
        ".7z",
        ".rar",
    }
)

DEFAULT_SKIP_DIRECTORIES = frozenset({"bin", "obj", "node_modules", ".git", ".vs", "packages", "dist", "build"})

TRUNCATION_MARKER = "\n... [file truncated]"

_SEGMENT_SPLIT = re.compile(r"[\\/]")


@dataclass(frozen=True)
class SkipPolicy:
    """Block-lists of binary/media extensions and build/VCS directory names.

    Extensions are stored lower-cased with their leading dot. Directory names
    match whole path segments exactly.
    """

    skip_extensions: frozenset[str] = DEFAULT_SKIP_EXTENSIONS
    skip_directories: frozenset[str] = DEFAULT_SKIP_DIRECTORIES

    def should_skip(self, path: str) -> bool:
        if file_extension(path) in self.skip_extensions:
            return True
        # The last segment is the file name itself, not a directory.
        directories = _SEGMENT_SPLIT.split(path)[:-1]
        return any(segment in self.skip_directories for segment in directories)


def is_excluded(filename: str, patterns: Iterable[str]) -> bool:
    """Return True if filename matches any user exclude pattern.

    Supports:
    - fnmatch globs on the full path: "src/generated/*.py"
    - fnmatch globs on the basename: "*.lock", "*.min.js"
    - Directory names/prefixes: "migrations/", "tests" (matches any file within that tree)
    """
    filename = filename.replace("\\", "/")
    for pattern in patterns:
        if fnmatch.fnmatch(filename, pattern):
            return True
        if fnmatch.fnmatch(filename.rsplit("/", 1)[-1], pattern):
            return True
        prefix = pattern.rstrip("/") + "/"
        if filename.startswith(prefix) or ("/" + prefix) in filename:
            return True
    return False


def truncate(content: str, max_chars: int | None) -> str:
    if max_chars and len(content) > max_chars:
        return content[:max_chars] + TRUNCATION_MARKER
    return content


def content_for_change(change: ChangeRecord) -> str:
    """Deleted files are reviewed as they were; everything else as it is now."""
    if change.kind == ChangeKind.DELETED:
        return change.old_content
    return change.new_content


def _accept(path: str, policy: SkipPolicy, exclude: Iterable[str]) -> bool:
    if policy.should_skip(path):
        logger.debug("Skipping %s (block-listed)", path)
        return False
    if is_excluded(path, exclude):
        logger.debug("Skipping %s (excluded by pattern)", path)
        return False
    return True


def select_changes(
    changes: Iterable[ChangeRecord],
    policy: SkipPolicy | None = None,
    exclude: Iterable[str] = (),
    max_chars: int | None = None,
) -> list[FileTarget]:
    policy = policy or SkipPolicy()
    exclude = list(exclude)
    targets = []
    for change in changes:
        if not _accept(change.path, policy, exclude):
            continue
        content = content_for_change(change)
        if not content:
            logger.debug("Skipping %s (no content)", change.path)
            continue
        logger.debug("Selected %s (%s, %s)", change.path, change.kind.value, change.language)
        targets.append(FileTarget(path=change.path, content=truncate(content, max_chars)))
    return targets


def select_paths(
    paths: Iterable[str],
    read_content: Callable[[str], str],
    policy: SkipPolicy | None = None,
    exclude: Iterable[str] = (),
    max_chars: int | None = None,
) -> list[FileTarget]:
    """Select explicit paths, resolving each one's content through ``read_content``.

    Files whose content cannot be read, or is empty, are dropped.
    """
    policy = policy or SkipPolicy()
    exclude = list(exclude)
    targets = []
    for path in paths:
        if not _accept(path, policy, exclude):
            continue
        try:
            content = read_content(path)
        except (OSError, UnicodeDecodeError, ChangeSourceError) as e:
            logger.debug("Skipping %s (could not read: %s)", path, e)
            continue
        if not content:
            logger.debug("Skipping %s (no content)", path)
            continue
        targets.append(FileTarget(path=path, content=truncate(content, max_chars)))
    return targets


def walk_directory(
    root: str | os.PathLike,
    policy: SkipPolicy | None = None,
    exclude: Iterable[str] = (),
    max_chars: int | None = None,
) -> list[FileTarget]:
    """Select every analysable file under ``root``; paths are reported relative to it."""
    policy = policy or SkipPolicy()
    root_path = Path(root)
    if not root_path.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")

    relative_paths = []
    for dirpath, dirnames, filenames in os.walk(root_path):
        dirnames[:] = sorted(d for d in dirnames if d not in policy.skip_directories)
        for name in sorted(filenames):
            full = Path(dirpath, name)
            relative_paths.append(full.relative_to(root_path).as_posix())

    def _read(relative: str) -> str:
        return (root_path / relative).read_text(encoding="utf-8")

    return select_paths(relative_paths, _read, policy, exclude, max_chars)
