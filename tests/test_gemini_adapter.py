"""
Tests for the Gemini adapter error handling.
"""

import asyncio
from types import SimpleNamespace

import pytest

from tierscope.adapters.llm.gemini_adapter import GeminiAdapter, is_transient_error
from tierscope.domain.ports.llm_port import LLMError
from tierscope.infrastructure.config import Settings


class FakeModels:
    """Stands in for client.aio.models, replaying queued outcomes."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def generate_content(self, model, contents, config=None):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_adapter(outcomes):
    models = FakeModels(outcomes)
    client = SimpleNamespace(aio=SimpleNamespace(models=models))
    settings = Settings(gemini_api_key="test-key", _env_file=None)
    return GeminiAdapter(settings, client=client), models


def make_response(text):
    return SimpleNamespace(
        text=text,
        candidates=[SimpleNamespace(finish_reason="STOP")],
        usage_metadata=SimpleNamespace(
            prompt_token_count=10, candidates_token_count=5, total_token_count=15,
        ),
    )


class TestTransientErrors:
    """Tests for transient error classification."""

    @pytest.mark.parametrize(
        "message",
        ["503 UNAVAILABLE", "Model is overloaded", "429 Too Many Requests", "deadline timeout"],
    )
    def test_transient(self, message):
        assert is_transient_error(RuntimeError(message))

    def test_permanent(self):
        assert not is_transient_error(ValueError("400 invalid argument"))


class TestGenerate:
    """Tests for generate_with_prompt."""

    def test_response_mapping(self):
        adapter, _ = make_adapter([make_response("Stay patient.")])

        response = asyncio.run(adapter.generate_with_prompt("system", "user"))

        assert response.content == "Stay patient."
        assert response.finish_reason == "stop"
        assert response.total_tokens == 15

    def test_permanent_error_wrapped_without_retry(self):
        """Test non-transient failures raise LLMError after one call."""
        adapter, models = make_adapter([ValueError("400 invalid argument")])

        with pytest.raises(LLMError):
            asyncio.run(adapter.generate_with_prompt("system", "user"))

        assert models.calls == 1

    def test_missing_text_is_empty(self):
        adapter, _ = make_adapter([make_response(None)])

        response = asyncio.run(adapter.generate_with_prompt("system", "user"))

        assert response.is_empty

    def test_health_check_reports_failure(self):
        adapter, _ = make_adapter([ValueError("401 unauthenticated")])
        assert asyncio.run(adapter.health_check()) is False
