"""
Opportunity Analysis Engine - Runs tier aggregation and detection over a snapshot.
"""

from datetime import datetime
from typing import Any, Optional, Sequence

from tierscope.application.services.opportunity_detector import OpportunityDetector
from tierscope.application.services.tier_aggregator import aggregate_by_tier
from tierscope.domain.entities.opportunity import TradingOpportunity
from tierscope.domain.entities.token import TokenSnapshot
from tierscope.infrastructure.logging import get_logger

logger = get_logger(__name__)


class OpportunityEngine:
    """
    Orchestrates opportunity analysis for a token universe.

    Pure and synchronous: callers own snapshot acquisition and persisting
    the results.
    """

    def __init__(self, detector: Optional[OpportunityDetector] = None):
        self.detector = detector or OpportunityDetector()

    def analyze(
        self,
        tokens: Sequence[TokenSnapshot],
        now: Optional[datetime] = None,
    ) -> list[TradingOpportunity]:
        """
        Produce ranked opportunities for the token universe.

        Args:
            tokens: Token snapshot
            now: Creation time for emitted opportunities

        Returns:
            Opportunities sorted by confidence descending (empty if none clear
            the gates).
        """
        if not tokens:
            logger.info("No tokens to analyze")
            return []

        opportunities = self.detector.detect(tokens, now=now)

        logger.info(
            "Opportunity analysis complete",
            tokens=len(tokens),
            opportunities=len(opportunities),
            top=[o.summary for o in opportunities[:3]],
        )
        return opportunities

    def tier_summary(self, tokens: Sequence[TokenSnapshot]) -> dict[str, dict[str, Any]]:
        """Member count and mean 24h change per tier, largest tier first."""
        return {
            tier.value: {
                "count": stats.count,
                "mean_change_24h": float(stats.mean_change_24h),
            }
            for tier, stats in aggregate_by_tier(tokens).items()
        }
