from __future__ import annotations

from revlens_core.config import PROVIDER_NAMES
from revlens_core.providers.base import BaseAnalyzer

PROVIDERS = PROVIDER_NAMES


def get_analyzer(config: dict) -> BaseAnalyzer:
    """Instantiate the reasoning provider named by ``config["model"]``."""
    model = config["model"]
    model_name = config.get("model_name")
    if model == "anthropic":
        from revlens_core.providers.anthropic import AnthropicAnalyzer

        return AnthropicAnalyzer(api_key=config["anthropic_api_key"], model=model_name)
    if model == "openai":
        from revlens_core.providers.openai import OpenAIAnalyzer

        return OpenAIAnalyzer(api_key=config["openai_api_key"], model=model_name)
    if model == "demo":
        from revlens_core.providers.demo import DemoAnalyzer

        return DemoAnalyzer(model=model_name)
    raise ValueError(f"Unknown model provider: {model!r}. Choose one of: {', '.join(PROVIDERS)}.")
