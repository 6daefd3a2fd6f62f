"""Core review orchestration.

ReviewPipeline drives selection → analysis → extraction → assembly →
aggregation for each of the supported entry points. Entry points never
raise: a file that fails is logged and skipped, and a run that fails
outright still returns a ReviewResult (with no reviews) so callers only
ever have to check for emptiness.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Iterable, Mapping

from rich.console import Console

from revlens_core.assembler import assemble_review
from revlens_core.config import build_skip_policy
from revlens_core.dispatcher import dispatch
from revlens_core.extractor import FindingExtractor, KeywordFindingExtractor
from revlens_core.models import FileTarget, Review, ReviewResult
from revlens_core.selector import SkipPolicy, select_changes, select_paths, walk_directory
from revlens_core.sources.base import BaseChangeSource
from revlens_core.sources.local import LocalGitSource
from revlens_core.summary import summarize

# Progress goes to stderr so a JSON report on stdout stays parseable.
console = Console(stderr=True)
logger = logging.getLogger(__name__)

UPLOADED_FILES_LABEL = "Uploaded Files"


class RunState(str, Enum):
    STARTED = "started"
    SELECTING = "selecting"
    ANALYZING = "analyzing"
    AGGREGATING = "aggregating"
    COMPLETED = "completed"
    FAILED = "failed"


Selection = tuple[list[FileTarget], str]


class ReviewPipeline:
    def __init__(
        self,
        analyzer,
        source: BaseChangeSource | None = None,
        policy: SkipPolicy | None = None,
        exclude: Iterable[str] = (),
        max_chars_per_file: int | None = 20000,
        extractor: FindingExtractor | None = None,
    ):
        self.analyzer = analyzer
        self.source = source if source is not None else LocalGitSource()
        self.policy = policy or SkipPolicy()
        self.exclude = list(exclude)
        self.max_chars_per_file = max_chars_per_file
        self.extractor = extractor or KeywordFindingExtractor()

    @classmethod
    def from_config(cls, config: dict, analyzer, source: BaseChangeSource | None = None) -> ReviewPipeline:
        return cls(
            analyzer,
            source=source,
            policy=build_skip_policy(config),
            exclude=config.get("exclude", []),
            max_chars_per_file=config.get("max_chars_per_file", 20000),
        )

    # ------------------------------------------------------------------ #
    # Entry points                                                         #
    # ------------------------------------------------------------------ #

    def review_commit(self, repo_path: str, commit_hash: str) -> ReviewResult:
        def select() -> Selection:
            changes = self.source.get_changes(repo_path, commit_hash)
            commit_info = self.source.get_commit_info(repo_path, commit_hash)
            return self._select_changes(changes), commit_info.message

        return self._run(f"commit {commit_hash} in {repo_path}", select, repo_path, commit_hash)

    def review_pull_request(self, repo_path: str, base_ref: str, head_ref: str) -> ReviewResult:
        def select() -> Selection:
            changes = self.source.get_pull_request_changes(repo_path, base_ref, head_ref)
            return self._select_changes(changes), f"PR from {base_ref} to {head_ref}"

        return self._run(f"PR from {base_ref} to {head_ref} in {repo_path}", select, repo_path)

    def review_files(self, repo_path: str, file_paths: Iterable[str]) -> ReviewResult:
        def select() -> Selection:
            targets = select_paths(
                file_paths,
                lambda path: self.source.get_file_content(repo_path, path),
                self.policy,
                self.exclude,
                self.max_chars_per_file,
            )
            return targets, "File review"

        return self._run(f"files in {repo_path}", select, repo_path)

    def review_directory(self, directory: str) -> ReviewResult:
        def select() -> Selection:
            targets = walk_directory(directory, self.policy, self.exclude, self.max_chars_per_file)
            return targets, "Directory review"

        return self._run(f"directory {directory}", select, directory)

    def review_contents(self, files: Mapping[str, str]) -> ReviewResult:
        """Review in-memory files, e.g. uploads, keyed by path."""

        def select() -> Selection:
            targets = select_paths(files, files.__getitem__, self.policy, self.exclude, self.max_chars_per_file)
            return targets, "Uploaded file review"

        return self._run(f"{len(files)} uploaded file(s)", select, UPLOADED_FILES_LABEL)

    # ------------------------------------------------------------------ #
    # Internals                                                            #
    # ------------------------------------------------------------------ #

    def _select_changes(self, changes) -> list[FileTarget]:
        return select_changes(changes, self.policy, self.exclude, self.max_chars_per_file)

    def _run(
        self,
        label: str,
        select: Callable[[], Selection],
        repo_path: str,
        commit_hash: str | None = None,
    ) -> ReviewResult:
        start = time.monotonic()
        state = RunState.STARTED
        logger.info("Starting review of %s", label)

        try:
            state = self._advance(state, RunState.SELECTING)
            targets, context = select()

            state = self._advance(state, RunState.ANALYZING)
            reviews = self._review_targets(targets, context)

            state = self._advance(state, RunState.AGGREGATING)
            summary = summarize(reviews)
        except Exception as e:
            self._advance(state, RunState.FAILED)
            logger.exception("Review of %s failed while %s", label, state.value)
            console.print(f"[red]Review failed: {e}[/red]")
            return ReviewResult(
                repo_path=repo_path,
                commit_hash=commit_hash,
                duration_seconds=time.monotonic() - start,
            )

        self._advance(state, RunState.COMPLETED)
        elapsed = time.monotonic() - start
        logger.info("Completed review of %s in %.2fs", label, elapsed)
        return ReviewResult(
            reviews=tuple(reviews),
            summary=summary,
            repo_path=repo_path,
            commit_hash=commit_hash,
            duration_seconds=elapsed,
        )

    @staticmethod
    def _advance(current: RunState, new: RunState) -> RunState:
        logger.debug("Review run: %s -> %s", current.value, new.value)
        return new

    def _review_targets(self, targets: list[FileTarget], context: str) -> list[Review]:
        reviews = []
        total = len(targets)
        for i, target in enumerate(targets, 1):
            console.print(f"[{i}/{total}] Reviewing: {target.path} ({target.language})")
            review = self._review_file(target, context)
            if review is None:
                continue
            reviews.append(review)
            console.print(f"  {len(review.issues)} issue(s), {len(review.suggestions)} suggestion(s).")
        return reviews

    def _review_file(self, target: FileTarget, context: str) -> Review | None:
        try:
            bundle = dispatch(self.analyzer, target.content, context, target.path)
            if bundle.errors:
                logger.warning(
                    "Analysis of %s failed for: %s",
                    target.path,
                    ", ".join(kind.value for kind in bundle.errors),
                )
            findings = self.extractor.extract(bundle)
            return assemble_review(target.path, bundle.general, findings.issues, findings.suggestions)
        except Exception as e:
            logger.exception("Error reviewing %s", target.path)
            console.print(f"  [red]Could not review file: {e}[/red]")
            return None
