from __future__ import annotations

import logging

try:
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]

from revlens_core.providers.base import BaseAnalyzer

logger = logging.getLogger(__name__)


class OpenAIAnalyzer(BaseAnalyzer):
    """OpenAI chat completions."""

    MODEL = "gpt-4o"
    TEMPERATURE = 0.2

    def __init__(self, api_key: str, model: str | None = None):
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this provider. Install it with: pip install 'revlens[openai]'"
            )
        self.client = _OpenAI(api_key=api_key)
        self.model = model or self.MODEL

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        choice = response.choices[0]
        if choice.finish_reason == "length":
            logger.warning("%s answer was cut off at %d tokens", self.model, self.MAX_TOKENS)
        if not choice.message.content:
            raise ValueError("OpenAI returned an empty message")
        return choice.message.content
