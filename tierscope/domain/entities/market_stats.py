"""
Market Statistics Entities - Aggregate views consumed by transport and the assistant.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass
class MarketStats:
    """
    Summary statistics over the token universe.

    Attributes:
        total_market_cap: Sum of market caps in USD
        btc_dominance: BTC share of total market cap in percent
        market_trend: bullish, bearish or neutral
        volatility_index: Mean absolute 24h change scaled to 0-100
        active_opportunities: Number of live opportunities
        tier_distribution: Token count per tier value
    """

    total_market_cap: float = 0.0
    btc_dominance: float = 0.0
    market_trend: str = "neutral"
    volatility_index: float = 0.0
    active_opportunities: int = 0
    tier_distribution: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_market_cap": self.total_market_cap,
            "btc_dominance": self.btc_dominance,
            "market_trend": self.market_trend,
            "volatility_index": self.volatility_index,
            "active_opportunities": self.active_opportunities,
            "tier_distribution": self.tier_distribution,
        }


@dataclass
class CorrelationRecord:
    """
    Pairwise tier-to-tier price correlation over a timeframe.

    Display data only; detection never reads it.
    """

    tier1: str
    tier2: str
    correlation: float
    timeframe: str  # 1h, 24h, 7d, 30d
    id: Optional[int] = None
    calculated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tier1": self.tier1,
            "tier2": self.tier2,
            "correlation": self.correlation,
            "timeframe": self.timeframe,
            "calculated_at": self.calculated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CorrelationRecord":
        calculated_at = data.get("calculated_at")
        if isinstance(calculated_at, str):
            calculated_at = datetime.fromisoformat(calculated_at)
        elif calculated_at is None:
            calculated_at = datetime.now()

        record_id = data.get("id")
        return cls(
            id=int(record_id) if record_id is not None else None,
            tier1=data["tier1"],
            tier2=data["tier2"],
            correlation=float(data["correlation"]),
            timeframe=data.get("timeframe", "24h"),
            calculated_at=calculated_at,
        )
