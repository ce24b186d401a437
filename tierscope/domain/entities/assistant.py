"""
Assistant Entities - Input context and reply shape of the trading assistant.
"""

from dataclasses import dataclass, field
from typing import Any

from tierscope.domain.entities.market_stats import MarketStats
from tierscope.domain.entities.opportunity import TradingOpportunity
from tierscope.domain.entities.token import TokenSnapshot


@dataclass
class AssistantContext:
    """Market data handed to the assistant with each query."""

    tokens: list[TokenSnapshot] = field(default_factory=list)
    opportunities: list[TradingOpportunity] = field(default_factory=list)
    market_stats: MarketStats = field(default_factory=MarketStats)


@dataclass
class AssistantReply:
    """
    Assistant answer with derived labels.

    Attributes:
        response: Free-text answer
        sentiment: bullish, bearish or neutral
        risk_level: low, medium or high
        confidence: 0-100
        recommendations: Short actionable bullet points
    """

    response: str
    sentiment: str = "neutral"
    risk_level: str = "medium"
    confidence: float = 75.0
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "response": self.response,
            "sentiment": self.sentiment,
            "risk_level": self.risk_level,
            "confidence": self.confidence,
            "recommendations": self.recommendations,
        }
