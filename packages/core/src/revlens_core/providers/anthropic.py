from __future__ import annotations

import logging

from revlens_core.providers.base import BaseAnalyzer

logger = logging.getLogger(__name__)


class AnthropicAnalyzer(BaseAnalyzer):
    """Claude through the Messages API."""

    MODEL = "claude-sonnet-4-20250514"
    TEMPERATURE = 0.3

    def __init__(self, api_key: str, model: str | None = None):
        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. "
                "Install it with: pip install 'revlens[anthropic]'"
            )
        self.client = anthropic.Anthropic(api_key=api_key)
        self.model = model or self.MODEL

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        response = self.client.messages.create(
            model=self.model,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        if response.stop_reason == "max_tokens":
            logger.warning("%s answer was cut off at %d tokens", self.model, self.MAX_TOKENS)
        text = "".join(block.text for block in response.content if block.type == "text").strip()
        if not text:
            raise ValueError("Anthropic returned no text content")
        return text
