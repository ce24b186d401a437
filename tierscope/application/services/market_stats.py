"""
Market Stats Service - Aggregate statistics for transport and the assistant.
"""

from datetime import datetime
from typing import Any, Optional, Sequence

from tierscope.application.services.tier_aggregator import mean_change
from tierscope.domain.entities.market_stats import CorrelationRecord, MarketStats
from tierscope.domain.entities.opportunity import TradingOpportunity
from tierscope.domain.entities.token import TokenSnapshot

TREND_THRESHOLD = 2.0
DOMINANT_SYMBOL = "BTC"


class MarketStatsService:
    """Computes market-wide summary figures from a token snapshot."""

    def total_market_cap(self, tokens: Sequence[TokenSnapshot]) -> float:
        return float(sum(t.market_cap for t in tokens))

    def btc_dominance(self, tokens: Sequence[TokenSnapshot]) -> float:
        """BTC market cap as a percentage of the total (0 if BTC is absent)."""
        btc = next((t for t in tokens if t.symbol == DOMINANT_SYMBOL), None)
        if btc is None:
            return 0.0

        total = self.total_market_cap(tokens)
        if total <= 0:
            return 0.0
        return float(btc.market_cap) / total * 100

    def market_trend(self, tokens: Sequence[TokenSnapshot]) -> str:
        """bullish above +2% mean change, bearish below -2%, else neutral."""
        avg = float(mean_change(tokens))
        if avg > TREND_THRESHOLD:
            return "bullish"
        if avg < -TREND_THRESHOLD:
            return "bearish"
        return "neutral"

    def tier_distribution(self, tokens: Sequence[TokenSnapshot]) -> dict[str, int]:
        distribution: dict[str, int] = {}
        for token in tokens:
            distribution[token.tier.value] = distribution.get(token.tier.value, 0) + 1
        return distribution

    def volatility_index(self, tokens: Sequence[TokenSnapshot]) -> float:
        """Mean absolute 24h change scaled to 0-100 (10% average move = 100)."""
        if not tokens:
            return 0.0
        avg_abs = sum(abs(t.change_pct) for t in tokens) / len(tokens)
        return min(100.0, avg_abs * 10)

    def build(
        self,
        tokens: Sequence[TokenSnapshot],
        active_opportunities: Sequence[TradingOpportunity] = (),
    ) -> MarketStats:
        """Compute all statistics at once."""
        return MarketStats(
            total_market_cap=self.total_market_cap(tokens),
            btc_dominance=self.btc_dominance(tokens),
            market_trend=self.market_trend(tokens),
            volatility_index=self.volatility_index(tokens),
            active_opportunities=len(active_opportunities),
            tier_distribution=self.tier_distribution(tokens),
        )


def build_market_update(
    tokens: Sequence[TokenSnapshot],
    opportunities: Sequence[TradingOpportunity],
    correlations: Sequence[CorrelationRecord],
    stats: MarketStats,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Build the JSON-safe payload pushed to connected clients on each refresh.

    The transport itself lives outside this package.
    """
    return {
        "type": "marketUpdate",
        "timestamp": (now or datetime.now()).isoformat(),
        "data": {
            "cryptocurrencies": [t.to_dict() for t in tokens],
            "opportunities": [o.to_dict() for o in opportunities],
            "correlations": [c.to_dict() for c in correlations],
            "totalMarketCap": stats.total_market_cap,
            "btcDominance": stats.btc_dominance,
            "marketTrend": stats.market_trend,
        },
    }
