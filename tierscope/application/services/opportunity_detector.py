"""
Opportunity Detector - Emits signals for tokens that deviate from their tier.

Pipeline per token:
1. deviation = |change - tier mean|; skip unless deviation > 2
2. composite risk from RiskScorer
3. confidence from the confidence model; skip unless confidence > 60
4. direction by mean reversion: lagging -> long, leading -> short
5. secondary fields and a fixed expiry
"""

from datetime import datetime, timedelta
from typing import Optional, Sequence

from tierscope.application.services import confidence_model as cm
from tierscope.application.services.risk_scorer import RiskScorer
from tierscope.application.services.tier_aggregator import aggregate_by_tier
from tierscope.domain.entities.opportunity import (
    OpportunityAnalysis,
    OpportunityType,
    TradingOpportunity,
)
from tierscope.domain.entities.token import TierStats, TokenSnapshot
from tierscope.infrastructure.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TTL = timedelta(hours=24)


class OpportunityDetector:
    """
    Stateless detector over an in-memory token snapshot.

    Safe to call concurrently; it never mutates its inputs.
    """

    def __init__(
        self,
        risk_scorer: Optional[RiskScorer] = None,
        ttl: timedelta = DEFAULT_TTL,
    ):
        """
        Initialize the detector.

        Args:
            risk_scorer: Scorer for risk components (default priors if None)
            ttl: Lifetime of emitted opportunities
        """
        self.risk_scorer = risk_scorer or RiskScorer()
        self.ttl = ttl

    def detect(
        self,
        tokens: Sequence[TokenSnapshot],
        now: Optional[datetime] = None,
    ) -> list[TradingOpportunity]:
        """
        Detect opportunities across the token universe.

        Args:
            tokens: Token universe (id, symbol, price, market cap, volume,
                24h change and tier required)
            now: Creation time for emitted opportunities

        Returns:
            Opportunities sorted by confidence descending; ties keep tier
            order then token order.

        Raises:
            DataIntegrityError: If a token violates snapshot invariants.
        """
        for token in tokens:
            token.validate()

        created_at = now or datetime.now()
        opportunities: list[TradingOpportunity] = []

        for stats in aggregate_by_tier(tokens).values():
            opportunities.extend(self._detect_in_tier(stats, tokens, created_at))

        return sorted(opportunities, key=lambda o: o.confidence, reverse=True)

    def _detect_in_tier(
        self,
        stats: TierStats,
        all_tokens: Sequence[TokenSnapshot],
        created_at: datetime,
    ) -> list[TradingOpportunity]:
        results = []
        for token in stats.members:
            deviation_exact = abs(token.price_change_percentage_24h - stats.mean_change_24h)
            if not cm.is_significant_deviation(deviation_exact):
                continue

            opportunity = self._evaluate(token, stats, all_tokens, float(deviation_exact), created_at)
            if opportunity is not None:
                results.append(opportunity)
        return results

    def _evaluate(
        self,
        token: TokenSnapshot,
        stats: TierStats,
        all_tokens: Sequence[TokenSnapshot],
        deviation: float,
        created_at: datetime,
    ) -> Optional[TradingOpportunity]:
        risk = self.risk_scorer.score(token, stats.members, all_tokens)
        risk_percentage = risk.composite
        result = cm.compute_confidence(deviation, risk_percentage, stats.count)

        if not cm.passes_confidence_gate(result.confidence):
            logger.debug(
                "Deviation below confidence gate",
                symbol=token.symbol,
                deviation=round(deviation, 2),
                confidence=round(result.confidence, 2),
            )
            return None

        is_long = token.price_change_percentage_24h < stats.mean_change_24h
        tier = stats.tier.value

        analysis = OpportunityAnalysis(
            volatility_risk=risk.volatility_risk,
            correlation_risk=risk.correlation_risk,
            volume_risk=risk.volume_risk,
            trend_risk=risk.trend_risk,
            statistical_significance=result.statistical_significance,
            historical_success_rate=cm.historical_success_rate(risk_percentage),
            explanation=cm.format_explanation(token.symbol, tier, is_long, deviation, risk_percentage),
            strategy=cm.format_strategy(tier, is_long, risk_percentage),
            entry_point=cm.format_entry_point(float(token.current_price), is_long),
            exit_point=cm.format_exit_point(deviation, risk_percentage),
            stop_loss=cm.format_stop_loss(risk_percentage),
        )

        return TradingOpportunity(
            cryptocurrency_id=token.id,
            symbol=token.symbol,
            tier=tier,
            opportunity_type=OpportunityType.LONG if is_long else OpportunityType.SHORT,
            risk_level=cm.determine_risk_level(risk_percentage),
            risk_percentage=risk_percentage,
            leverage_recommendation=cm.recommend_leverage(risk_percentage),
            expected_return=cm.expected_return(deviation, risk_percentage),
            confidence=result.confidence,
            analysis=analysis,
            created_at=created_at,
            expires_at=created_at + self.ttl,
        )
