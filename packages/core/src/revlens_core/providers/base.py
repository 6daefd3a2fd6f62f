"""Base analyzer implementing the Template Method pattern.

All providers share the same analysis algorithm:
    analyze() → _build_system_prompt() + _build_user_prompt()
              → _call_with_retry() → _call_api()   ← only this differs per provider

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return the text response

The response is returned as free-form prose. Turning it into findings is
the extractor's job, not the provider's.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod

from revlens_core.models import AnalysisKind, language_for

logger = logging.getLogger(__name__)

# Defaults; subclasses may override them as class attributes.
_MAX_RETRIES = 3
_MAX_TOKENS = 4096

SYSTEM_PROMPTS = {
    AnalysisKind.GENERAL: "You are an expert code reviewer giving comprehensive, constructive feedback.",
    AnalysisKind.SECURITY: "You are a security expert auditing source code for vulnerabilities.",
    AnalysisKind.QUALITY: "You are a code quality expert assessing maintainability and design.",
}

_FOCUS = {
    AnalysisKind.GENERAL: """Please provide feedback on:
1. Code quality and best practices
2. Potential bugs or issues
3. Performance considerations
4. Security concerns
5. Maintainability and readability
6. Specific suggestions for improvement

Format your response as structured feedback with clear sections.""",
    AnalysisKind.SECURITY: """Focus specifically on:
1. Injection vulnerabilities (SQL, XSS, command injection, etc.)
2. Authentication and authorization issues
3. Input validation problems
4. Cryptographic issues
5. Information disclosure
6. Insecure configurations
7. OWASP Top 10 vulnerabilities

Provide specific recommendations to fix any issues found.
Rate the severity of each finding as Critical, High, Medium, Low, or Info.""",
    AnalysisKind.QUALITY: """Evaluate:
1. Code complexity and maintainability
2. Naming conventions
3. Code organization and structure
4. Documentation and comments
5. Error handling
6. Testing considerations
7. Design patterns usage
8. SOLID principles adherence

Provide actionable recommendations.""",
}


class AnalysisError(Exception):
    """The reasoning backend could not produce an analysis."""


class BaseAnalyzer(ABC):
    MODEL: str = ""
    MAX_RETRIES: int = _MAX_RETRIES
    MAX_TOKENS: int = _MAX_TOKENS

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def analyze(self, code: str, context: str, file_name: str, kind: AnalysisKind) -> str:
        """Run one analysis of ``code`` and return the backend's prose response.

        Raises:
            AnalysisError: the backend failed on every attempt
        """
        system = self._build_system_prompt(kind)
        user = self._build_user_prompt(code, context, file_name, kind)
        return self._call_with_retry(system, user)

    # ------------------------------------------------------------------ #
    # Implemented by each provider                                       #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Make a single API call and return the raw text response.

        This is the only method subclasses must implement. It should raise
        on failure; _call_with_retry handles retries and logging.
        """

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _call_with_retry(self, system_prompt: str, user_prompt: str) -> str:
        """Retry _call_api up to MAX_RETRIES times with exponential backoff."""
        for attempt in range(self.MAX_RETRIES):
            try:
                return self._call_api(system_prompt, user_prompt)
            except Exception as e:
                if attempt == self.MAX_RETRIES - 1:
                    logger.error(
                        "%s API failed after %d attempts: %s",
                        self.__class__.__name__,
                        self.MAX_RETRIES,
                        e,
                    )
                    raise AnalysisError(str(e)) from e
                delay = 2**attempt
                logger.warning(
                    "%s API error (attempt %d/%d): %s. Retrying in %ds...",
                    self.__class__.__name__,
                    attempt + 1,
                    self.MAX_RETRIES,
                    e,
                    delay,
                )
                time.sleep(delay)
        raise AnalysisError(f"{self.__class__.__name__} is configured with no attempts")

    def _build_system_prompt(self, kind: AnalysisKind) -> str:
        return SYSTEM_PROMPTS[kind]

    def _build_user_prompt(self, code: str, context: str, file_name: str, kind: AnalysisKind) -> str:
        return f"""Analyze the following code.

File: {file_name}
Language: {language_for(file_name)}
Context: {context}

Code:
```
{code}
```

{_FOCUS[kind]}"""
