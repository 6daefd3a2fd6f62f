"""Offline provider returning canned analyses.

Useful for trying the tool without an API key and for exercising the whole
pipeline end to end: the security text rates nothing as critical, the
quality text mentions complexity and the general text proposes
improvements, so a demo run yields one medium issue and one suggestion per
file.
"""

from __future__ import annotations

from revlens_core.models import AnalysisKind
from revlens_core.providers.base import SYSTEM_PROMPTS, BaseAnalyzer

DEMO_RESPONSES = {
    AnalysisKind.GENERAL: """## Code Review (demo mode)

No provider API key is configured, so this is a canned response.

**Positive aspects:**
- Clear naming
- Reasonable separation of concerns

**Areas for improvement:**
- Consider adding more thorough error handling
- Add unit tests for the critical paths
- Add logging where failures are hard to diagnose

**Recommendations:**
- Validate inputs at module boundaries""",
    AnalysisKind.SECURITY: """## Security Analysis (demo mode)

No provider API key is configured, so this is a canned response.

1. **Input validation** (Medium): make sure external input is validated and sanitised
2. **Authentication** (High): review authentication paths for bypasses
3. **Data exposure** (Low): avoid leaking internals in error messages

Use parameterised queries and escape output rendered into HTML.""",
    AnalysisKind.QUALITY: """## Code Quality Analysis (demo mode)

No provider API key is configured, so this is a canned response.

- **Maintainability:** good overall structure with room to grow
- **Complexity:** some functions could be split into smaller units
- **Naming:** generally follows conventions
- **Documentation:** a few public functions lack docstrings""",
}


class DemoAnalyzer(BaseAnalyzer):
    MODEL = "demo"

    def __init__(self, model: str | None = None):
        self.model = model or self.MODEL

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        for kind, prompt in SYSTEM_PROMPTS.items():
            if system_prompt == prompt:
                return DEMO_RESPONSES[kind]
        return DEMO_RESPONSES[AnalysisKind.GENERAL]
