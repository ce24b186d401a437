"""
Gemini backend for the trading assistant.
"""

from typing import Any, Optional

from google import genai
from google.genai import types
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from tierscope.domain.ports.llm_port import LLMError, LLMPort, LLMResponse
from tierscope.infrastructure.config import Settings
from tierscope.infrastructure.logging import get_logger

logger = get_logger(__name__)

MAX_ATTEMPTS = 3
TRANSIENT_MARKERS = (
    "429", "500", "502", "503", "504",
    "overloaded", "unavailable", "rate limit", "too many requests", "timeout",
)


def is_transient_error(error: BaseException) -> bool:
    """Gemini surfaces HTTP status only in the message text."""
    message = str(error).lower()
    return any(marker in message for marker in TRANSIENT_MARKERS)


def _log_retry(state: RetryCallState) -> None:
    logger.warning(
        "Gemini call failed, retrying",
        attempt=state.attempt_number,
        max_attempts=MAX_ATTEMPTS,
        error=str(state.outcome.exception()) if state.outcome else None,
    )


def _usage_of(response: Any) -> dict[str, int]:
    meta = getattr(response, "usage_metadata", None)
    if meta is None:
        return {}
    return {
        "prompt_tokens": getattr(meta, "prompt_token_count", 0) or 0,
        "completion_tokens": getattr(meta, "candidates_token_count", 0) or 0,
        "total_tokens": getattr(meta, "total_token_count", 0) or 0,
    }


class GeminiAdapter(LLMPort):
    """LLMPort over the google-genai async client."""

    def __init__(self, settings: Settings, client: Optional[genai.Client] = None):
        self._model_name = settings.gemini_model
        self._client = client or genai.Client(api_key=settings.gemini_api_key)
        logger.info("Gemini adapter initialized", model=self._model_name)

    @property
    def model_name(self) -> str:
        return self._model_name

    @retry(
        retry=retry_if_exception(is_transient_error),
        stop=stop_after_attempt(MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=2, min=2, max=16),
        before_sleep=_log_retry,
        reraise=True,
    )
    async def _generate(self, contents: Any, config: Optional[types.GenerateContentConfig] = None) -> Any:
        return await self._client.aio.models.generate_content(
            model=self._model_name,
            contents=contents,
            config=config,
        )

    async def generate_with_prompt(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_tokens,
            system_instruction=system_prompt,
        )
        contents = [types.Content(role="user", parts=[types.Part(text=user_prompt)])]

        try:
            response = await self._generate(contents, config)
        except Exception as e:
            raise LLMError(self._model_name, str(e)) from e

        finish_reason = "stop"
        if response.candidates and response.candidates[0].finish_reason:
            finish_reason = str(response.candidates[0].finish_reason).lower()

        return LLMResponse(
            content=response.text or "",
            model=self._model_name,
            usage=_usage_of(response),
            finish_reason=finish_reason,
            raw_response=response,
        )

    async def health_check(self) -> bool:
        try:
            response = await self._generate("Hello")
        except Exception as e:
            logger.error("Gemini health check failed", error=str(e))
            return False
        return response.text is not None
