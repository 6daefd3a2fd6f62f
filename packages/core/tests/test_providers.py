"""Tests for reasoning-provider implementations.

Shared behaviour (_build_system_prompt, _build_user_prompt, _call_with_retry)
lives in BaseAnalyzer and is tested once via a lightweight stub. Provider
tests cover only what differs: SDK client setup and _call_api.
"""

from unittest.mock import MagicMock, patch

import pytest

from revlens_core.models import AnalysisKind
from revlens_core.providers.anthropic import AnthropicAnalyzer
from revlens_core.providers.base import SYSTEM_PROMPTS, AnalysisError, BaseAnalyzer
from revlens_core.providers.demo import DEMO_RESPONSES, DemoAnalyzer
from revlens_core.providers.factory import get_analyzer
from revlens_core.providers.openai import OpenAIAnalyzer


class _StubAnalyzer(BaseAnalyzer):
    """Minimal concrete subclass used to test BaseAnalyzer shared methods."""

    def __init__(self):
        self.calls = []

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        return "analysis text"


# ---------------------------------------------------------------------------
# Shared behaviour
# ---------------------------------------------------------------------------


class TestBaseAnalyzerPrompts:
    @pytest.mark.parametrize("kind", list(AnalysisKind))
    def test_system_prompt_per_kind(self, kind):
        assert _StubAnalyzer()._build_system_prompt(kind) == SYSTEM_PROMPTS[kind]

    def test_system_prompts_are_distinct(self):
        assert len(set(SYSTEM_PROMPTS.values())) == len(AnalysisKind)

    def test_user_prompt_contains_file_context_and_code(self):
        prompt = _StubAnalyzer()._build_user_prompt("class Foo: pass", "Fix login", "src/foo.py", AnalysisKind.GENERAL)
        assert "src/foo.py" in prompt
        assert "Fix login" in prompt
        assert "class Foo: pass" in prompt

    @pytest.mark.parametrize(
        "file_name, language", [("src/App.cs", "C#"), ("web/app.js", "JavaScript"), ("Makefile", "Unknown")]
    )
    def test_user_prompt_names_language(self, file_name, language):
        prompt = _StubAnalyzer()._build_user_prompt("x", "", file_name, AnalysisKind.GENERAL)
        assert f"Language: {language}" in prompt

    def test_security_prompt_asks_for_severity_ratings(self):
        prompt = _StubAnalyzer()._build_user_prompt("x = 1", "", "f.py", AnalysisKind.SECURITY)
        assert "Critical" in prompt
        assert "OWASP" in prompt

    def test_quality_prompt_mentions_complexity(self):
        prompt = _StubAnalyzer()._build_user_prompt("x = 1", "", "f.py", AnalysisKind.QUALITY)
        assert "complexity" in prompt.lower()

    def test_analyze_returns_raw_text(self):
        analyzer = _StubAnalyzer()
        assert analyzer.analyze("x = 1", "ctx", "f.py", AnalysisKind.SECURITY) == "analysis text"
        system, _ = analyzer.calls[0]
        assert system == SYSTEM_PROMPTS[AnalysisKind.SECURITY]


class TestBaseAnalyzerRetry:
    def test_raises_analysis_error_after_max_retries(self):
        class _AlwaysFail(BaseAnalyzer):
            def _call_api(self, system_prompt: str, user_prompt: str) -> str:
                raise RuntimeError("network error")

        with patch("revlens_core.providers.base.time.sleep") as sleep:
            with pytest.raises(AnalysisError, match="network error"):
                _AlwaysFail().analyze("x", "", "f.py", AnalysisKind.GENERAL)
        # Exponential backoff between the three attempts.
        assert [c.args[0] for c in sleep.call_args_list] == [1, 2]

    def test_retries_on_transient_failure(self):
        call_count = 0

        class _FailOnceThenSucceed(BaseAnalyzer):
            def _call_api(self, system_prompt: str, user_prompt: str) -> str:
                nonlocal call_count
                call_count += 1
                if call_count == 1:
                    raise RuntimeError("transient")
                return "ok"

        with patch("revlens_core.providers.base.time.sleep"):
            result = _FailOnceThenSucceed().analyze("x", "", "f.py", AnalysisKind.GENERAL)
        assert result == "ok"
        assert call_count == 2


# ---------------------------------------------------------------------------
# Provider-specific
# ---------------------------------------------------------------------------


class TestAnthropicAnalyzer:
    def test_raises_import_error_without_sdk(self):
        with patch.dict("sys.modules", {"anthropic": None}):
            with pytest.raises(ImportError, match="revlens\\[anthropic\\]"):
                AnthropicAnalyzer(api_key="key")

    def test_model_is_claude(self):
        assert "claude" in AnthropicAnalyzer.MODEL

    def test_model_override(self):
        assert AnthropicAnalyzer(api_key="key", model="claude-custom").model == "claude-custom"

    def test_call_api_joins_text_blocks(self):
        analyzer = AnthropicAnalyzer(api_key="key")
        analyzer.client = MagicMock()
        response = analyzer.client.messages.create.return_value
        response.stop_reason = "end_turn"
        response.content = [
            MagicMock(type="text", text="first "),
            MagicMock(type="tool_use", text="ignored"),
            MagicMock(type="text", text="second"),
        ]
        assert analyzer._call_api("system", "user") == "first second"
        kwargs = analyzer.client.messages.create.call_args.kwargs
        assert kwargs["system"] == "system"
        assert kwargs["temperature"] == AnthropicAnalyzer.TEMPERATURE

    def test_no_text_raises(self):
        analyzer = AnthropicAnalyzer(api_key="key")
        analyzer.client = MagicMock()
        response = analyzer.client.messages.create.return_value
        response.stop_reason = "end_turn"
        response.content = []
        with pytest.raises(ValueError):
            analyzer._call_api("system", "user")


class TestOpenAIAnalyzer:
    def test_raises_import_error_without_sdk(self):
        import revlens_core.providers.openai as openai_mod

        real_openai = openai_mod._OpenAI
        openai_mod._OpenAI = None
        try:
            with pytest.raises(ImportError):
                OpenAIAnalyzer(api_key="key")
        finally:
            openai_mod._OpenAI = real_openai

    def test_model_is_gpt(self):
        assert "gpt" in OpenAIAnalyzer.MODEL

    def test_temperature_is_set(self):
        assert OpenAIAnalyzer.TEMPERATURE == 0.2

    def test_empty_message_raises(self):
        analyzer = OpenAIAnalyzer(api_key="key")
        analyzer.client = MagicMock()
        analyzer.client.chat.completions.create.return_value.choices = [MagicMock(message=MagicMock(content=None))]
        with pytest.raises(ValueError):
            analyzer._call_api("system", "user")

    def test_call_api_sends_system_and_user_messages(self):
        analyzer = OpenAIAnalyzer(api_key="key", model="gpt-4o-mini")
        analyzer.client = MagicMock()
        analyzer.client.chat.completions.create.return_value.choices = [MagicMock(message=MagicMock(content="ok"))]
        assert analyzer._call_api("system", "user") == "ok"
        kwargs = analyzer.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert [m["role"] for m in kwargs["messages"]] == ["system", "user"]


class TestDemoAnalyzer:
    @pytest.mark.parametrize("kind", list(AnalysisKind))
    def test_returns_canned_response_per_kind(self, kind):
        assert DemoAnalyzer().analyze("x = 1", "", "f.py", kind) == DEMO_RESPONSES[kind]

    def test_security_response_flags_nothing_critical(self):
        assert "critical" not in DEMO_RESPONSES[AnalysisKind.SECURITY].lower()


class TestGetAnalyzer:
    def test_demo(self):
        assert isinstance(get_analyzer({"model": "demo"}), DemoAnalyzer)

    def test_openai_receives_key_and_model_name(self):
        analyzer = get_analyzer({"model": "openai", "openai_api_key": "k", "model_name": "gpt-4o-mini"})
        assert isinstance(analyzer, OpenAIAnalyzer)
        assert analyzer.model == "gpt-4o-mini"

    def test_anthropic_default_model(self):
        analyzer = get_analyzer({"model": "anthropic", "anthropic_api_key": "k", "model_name": None})
        assert isinstance(analyzer, AnthropicAnalyzer)
        assert analyzer.model == AnthropicAnalyzer.MODEL

    def test_unknown_provider_raises(self):
        with pytest.raises(ValueError, match="Unknown model provider"):
            get_analyzer({"model": "llama"})
