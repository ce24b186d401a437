"""
Risk Scorer - Four independent risk sub-scores for a token.

Volatility uses fixed tier priors rather than measured volatility; smaller
tiers are assumed structurally more volatile. Pass realized-volatility
priors to the constructor to change that without touching callers.
"""

from typing import Mapping, Optional, Sequence

from tierscope.application.services.tier_aggregator import mean_change
from tierscope.domain.entities.opportunity import RiskComponents
from tierscope.domain.entities.token import Tier, TokenSnapshot

DEFAULT_VOLATILITY_PRIORS: dict[Tier, float] = {
    Tier.MEGA: 15.0,
    Tier.LARGE: 25.0,
    Tier.LARGE_MEDIUM: 35.0,
    Tier.SMALL_MEDIUM: 45.0,
    Tier.SMALL: 55.0,
    Tier.MICRO: 75.0,
}
UNKNOWN_TIER_VOLATILITY = 50.0

# Volume / market cap bands
ILLIQUID_RATIO = 0.005
MANIPULATION_RATIO = 0.5


class RiskScorer:
    """
    Scores a token relative to its tier and to the full universe.

    Sub-scores:
    - Volatility: tier prior
    - Correlation: min(100, |change - tier mean| * 5)
    - Volume: liquidity band of volume / market cap
    - Trend: min(100, |change - market mean| * 3)
    """

    def __init__(self, volatility_priors: Optional[Mapping[Tier, float]] = None):
        self.volatility_priors = dict(volatility_priors or DEFAULT_VOLATILITY_PRIORS)

    def score(
        self,
        token: TokenSnapshot,
        tier_members: Sequence[TokenSnapshot],
        all_tokens: Sequence[TokenSnapshot],
    ) -> RiskComponents:
        """
        Compute risk components for one token.

        Args:
            token: Token being scored
            tier_members: Tokens sharing its tier (token included)
            all_tokens: Full token universe

        Returns:
            RiskComponents; use .composite for the risk percentage.
        """
        change = token.change_pct
        tier_mean = float(mean_change(tier_members))
        market_mean = float(mean_change(all_tokens))

        return RiskComponents(
            volatility_risk=self.volatility_risk(token),
            correlation_risk=self.correlation_risk(change, tier_mean),
            volume_risk=self.volume_risk(float(token.volume_24h), float(token.market_cap)),
            trend_risk=self.trend_risk(change, market_mean),
        )

    def volatility_risk(self, token: TokenSnapshot) -> float:
        try:
            tier = Tier(token.tier)
        except ValueError:
            return UNKNOWN_TIER_VOLATILITY
        return self.volatility_priors.get(tier, UNKNOWN_TIER_VOLATILITY)

    @staticmethod
    def correlation_risk(change: float, tier_mean: float) -> float:
        """Larger deviation from the tier is more likely noise."""
        return min(100.0, abs(change - tier_mean) * 5)

    @staticmethod
    def volume_risk(volume: float, market_cap: float) -> float:
        """Healthy liquidity is roughly 1-10% of market cap traded per day."""
        if market_cap == 0:
            return 100.0

        ratio = volume / market_cap
        if ratio < ILLIQUID_RATIO:
            return 80.0
        if ratio > MANIPULATION_RATIO:
            return 70.0
        return max(10.0, 50 - ratio * 200)

    @staticmethod
    def trend_risk(change: float, market_mean: float) -> float:
        """Risk of fighting the broad market trend."""
        return min(100.0, abs(change - market_mean) * 3)
