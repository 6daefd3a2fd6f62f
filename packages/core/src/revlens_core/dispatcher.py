"""Per-file fan-out of analysis requests.

Every selected file is analysed three times (general, security, quality).
The three calls are independent, so they run concurrently and are joined
with all-settled semantics: each slot ends up either with the backend's
text or with a recorded failure, and one slot failing never cancels the
others.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from revlens_core.models import AnalysisKind

logger = logging.getLogger(__name__)

# Stands in for a failed analysis. Must not contain any keyword the
# extractor looks for, so a failed slot produces no findings.
ANALYSIS_ERROR_PLACEHOLDER = (
    "Error occurred while analyzing code. Please check your provider configuration and try again."
)


@dataclass(frozen=True)
class AnalysisOutcome:
    """Result of one analysis request: text on success, a reason on failure."""

    kind: AnalysisKind
    text: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def text_or_placeholder(self) -> str:
        return self.text if self.ok and self.text is not None else ANALYSIS_ERROR_PLACEHOLDER


@dataclass(frozen=True)
class AnalysisBundle:
    general_outcome: AnalysisOutcome
    security_outcome: AnalysisOutcome
    quality_outcome: AnalysisOutcome

    @property
    def general(self) -> str:
        return self.general_outcome.text_or_placeholder

    @property
    def security(self) -> str:
        return self.security_outcome.text_or_placeholder

    @property
    def quality(self) -> str:
        return self.quality_outcome.text_or_placeholder

    @property
    def errors(self) -> dict[AnalysisKind, str]:
        outcomes = (self.general_outcome, self.security_outcome, self.quality_outcome)
        return {o.kind: o.error for o in outcomes if not o.ok}


def _run(analyzer, content: str, context: str, file_name: str, kind: AnalysisKind) -> AnalysisOutcome:
    try:
        text = analyzer.analyze(content, context, file_name, kind)
    except Exception as e:
        logger.warning("%s analysis of %s failed: %s", kind.value, file_name, e)
        return AnalysisOutcome(kind=kind, error=str(e) or type(e).__name__)
    return AnalysisOutcome(kind=kind, text=text)


def dispatch(analyzer, content: str, context: str, file_name: str) -> AnalysisBundle:
    """Run the general, security and quality analyses of one file concurrently.

    Returns only once all three have finished. Never raises on backend
    failure; failed slots carry ANALYSIS_ERROR_PLACEHOLDER as their text.
    """
    kinds = (AnalysisKind.GENERAL, AnalysisKind.SECURITY, AnalysisKind.QUALITY)
    with ThreadPoolExecutor(max_workers=len(kinds), thread_name_prefix="revlens-analysis") as pool:
        futures = [pool.submit(_run, analyzer, content, context, file_name, kind) for kind in kinds]
        general, security, quality = (f.result() for f in futures)
    return AnalysisBundle(general_outcome=general, security_outcome=security, quality_outcome=quality)
