"""
Domain ports - Interface definitions for hexagonal architecture.
"""

from tierscope.domain.ports.market_data_port import MarketDataPort
from tierscope.domain.ports.storage_port import MarketStoragePort
from tierscope.domain.ports.llm_port import LLMError, LLMPort, LLMResponse

__all__ = [
    "MarketDataPort",
    "MarketStoragePort",
    "LLMError",
    "LLMPort",
    "LLMResponse",
]
