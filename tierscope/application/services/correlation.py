"""
Correlation Service - Price statistics and tier-to-tier correlations.

Correlation records are display data for the dashboard; detection does not
read them.
"""

import math
from itertools import combinations
from typing import Mapping, Sequence

from tierscope.domain.entities.market_stats import CorrelationRecord
from tierscope.domain.entities.token import Tier
from tierscope.infrastructure.logging import get_logger

logger = get_logger(__name__)


def calculate_volatility(prices: Sequence[float]) -> float:
    """
    Population standard deviation of simple returns, in percent.

    Returns 0 for fewer than two prices.
    """
    if len(prices) < 2:
        return 0.0

    returns = [
        (prices[i] - prices[i - 1]) / prices[i - 1]
        for i in range(1, len(prices))
        if prices[i - 1] != 0
    ]
    if not returns:
        return 0.0

    mean = sum(returns) / len(returns)
    variance = sum((r - mean) ** 2 for r in returns) / len(returns)
    return math.sqrt(variance) * 100


def calculate_correlation(prices1: Sequence[float], prices2: Sequence[float]) -> float:
    """
    Pearson correlation of two equal-length series.

    Returns 0 on length mismatch, fewer than two points or zero variance.
    """
    if len(prices1) != len(prices2) or len(prices1) < 2:
        return 0.0

    n = len(prices1)
    sum1 = sum(prices1)
    sum2 = sum(prices2)
    sum1_sq = sum(p * p for p in prices1)
    sum2_sq = sum(p * p for p in prices2)
    p_sum = sum(a * b for a, b in zip(prices1, prices2))

    num = p_sum - (sum1 * sum2 / n)
    den_sq = (sum1_sq - sum1 * sum1 / n) * (sum2_sq - sum2 * sum2 / n)
    if den_sq <= 0:
        return 0.0
    return max(-1.0, min(1.0, num / math.sqrt(den_sq)))


class CorrelationService:
    """Builds tier correlation records from per-tier price series."""

    def compute_tier_correlations(
        self,
        series_by_tier: Mapping[Tier, Sequence[float]],
        timeframe: str = "24h",
    ) -> list[CorrelationRecord]:
        """
        Correlate every pair of tiers.

        Series are truncated to their common trailing length so histories
        of slightly different sizes still line up on the most recent points.

        Args:
            series_by_tier: Representative price series per tier
            timeframe: Timeframe label stored on each record

        Returns:
            One record per tier pair, in tier order.
        """
        tiers = [t for t in Tier.ordered() if len(series_by_tier.get(t, ())) >= 2]
        records = []

        for tier1, tier2 in combinations(tiers, 2):
            a = list(series_by_tier[tier1])
            b = list(series_by_tier[tier2])
            length = min(len(a), len(b))
            correlation = calculate_correlation(a[-length:], b[-length:])
            records.append(
                CorrelationRecord(
                    tier1=tier1.value,
                    tier2=tier2.value,
                    correlation=round(correlation, 4),
                    timeframe=timeframe,
                )
            )

        logger.debug("Computed tier correlations", pairs=len(records), timeframe=timeframe)
        return records

    def tier_volatility(self, series_by_tier: Mapping[Tier, Sequence[float]]) -> dict[str, float]:
        """Realized volatility (percent) per tier with at least two prices, in tier order."""
        return {
            tier.value: round(calculate_volatility(series_by_tier[tier]), 4)
            for tier in Tier.ordered()
            if len(series_by_tier.get(tier, ())) >= 2
        }
