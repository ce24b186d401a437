"""
LLM Port - text generation backend for the trading assistant.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


class LLMError(Exception):
    """Raised when a model call fails after the adapter gave up on it."""

    def __init__(self, model: str, message: str):
        self.model = model
        super().__init__(f"{model}: {message}")


@dataclass
class LLMResponse:
    """A single completion."""

    content: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)
    finish_reason: str = "stop"
    raw_response: Optional[Any] = None

    @property
    def is_empty(self) -> bool:
        return not self.content.strip()

    @property
    def total_tokens(self) -> int:
        return self.usage.get("total_tokens", 0)


class LLMPort(ABC):
    """
    Chat-style completion with a system persona and one user turn.

    Implementations:
        - GeminiAdapter
    """

    @property
    @abstractmethod
    def model_name(self) -> str:
        ...

    @abstractmethod
    async def generate_with_prompt(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """
        Complete `user_prompt` under `system_prompt`.

        Raises:
            LLMError: the backend could not produce a completion.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True when the backend answers a trivial prompt."""
        ...
