"""
Confidence Model - Turns deviation and risk into confidence and trade guidance.

All functions are pure so they can be tested without the detector.
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from tierscope.domain.entities.opportunity import RiskLevel

MIN_DEVIATION = 2.0  # percentage points, exclusive
MIN_CONFIDENCE = 60.0  # exclusive
MAX_CONFIDENCE = 95.0
MAX_SIGNIFICANCE = 5.0
RECOVERY_FRACTION = 0.6


@dataclass(frozen=True)
class ConfidenceResult:
    """Confidence in [0, 95] and its significance input."""

    confidence: float
    statistical_significance: float


def statistical_significance(deviation: float, tier_member_count: int) -> float:
    """
    Sigma-like proxy in [0, 5].

    Not a z-score: it only grows with deviation and with sqrt of the tier
    size, so larger tiers make the same deviation look more significant.
    """
    significance = (deviation / 10) * math.sqrt(max(tier_member_count, 0))
    return min(MAX_SIGNIFICANCE, significance)


def compute_confidence(
    deviation: float,
    risk_percentage: float,
    tier_member_count: int,
) -> ConfidenceResult:
    """
    Compute confidence for a deviation, penalized by composite risk.

    Args:
        deviation: |token change - tier mean| in percentage points
        risk_percentage: Composite risk in [0, 100]
        tier_member_count: Number of tokens in the tier

    Returns:
        ConfidenceResult with confidence in [0, 95].
    """
    significance = statistical_significance(deviation, tier_member_count)
    confidence = min(MAX_CONFIDENCE, deviation * 10 + significance * 20)
    confidence = max(0.0, confidence - risk_percentage * 0.5)
    return ConfidenceResult(confidence=confidence, statistical_significance=significance)


def is_significant_deviation(deviation: Union[float, Decimal]) -> bool:
    return deviation > MIN_DEVIATION


def passes_confidence_gate(confidence: float) -> bool:
    return confidence > MIN_CONFIDENCE


def determine_risk_level(risk_percentage: float) -> RiskLevel:
    if risk_percentage <= 30:
        return RiskLevel.LOW
    if risk_percentage <= 60:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def recommend_leverage(risk_percentage: float) -> str:
    if risk_percentage <= 20:
        return "8-10x"
    if risk_percentage <= 35:
        return "5-7x"
    if risk_percentage <= 50:
        return "3-5x"
    return "2-3x"


def expected_return(deviation: float, risk_percentage: float) -> float:
    """Assume 60% of the deviation is recovered, scaled down by risk."""
    return deviation * RECOVERY_FRACTION * (100 - risk_percentage) / 100


def historical_success_rate(risk_percentage: float) -> float:
    """Heuristic estimate, inversely related to risk, floored at 30%."""
    return max(30.0, 95 - risk_percentage * 0.8)


def format_entry_point(current_price: float, is_long: bool) -> str:
    adjustment = 0.98 if is_long else 1.02
    return f"${current_price * adjustment:.6f} ({'on dip' if is_long else 'on bounce'})"


def format_exit_point(deviation: float, risk_percentage: float) -> str:
    recovery = expected_return(deviation, risk_percentage)
    return f"{recovery:.1f}% {'profit' if recovery > 0 else 'loss'} target"


def format_stop_loss(risk_percentage: float) -> str:
    return f"{max(3.0, risk_percentage * 0.15):.1f}% stop loss"


def format_explanation(
    symbol: str,
    tier: str,
    is_lagging: bool,
    deviation: float,
    risk_percentage: float,
) -> str:
    return (
        f"{symbol} is {'lagging' if is_lagging else 'outperforming'} its {tier} tier "
        f"average by {deviation:.1f}%. "
        f"This represents a {'significant' if deviation > 5 else 'moderate'} deviation "
        f"from expected correlation patterns. "
        f"Risk assessment indicates {risk_percentage:.1f}% overall risk based on "
        f"volatility, volume, and trend analysis."
    )


def format_strategy(tier: str, is_long: bool, risk_percentage: float) -> str:
    return (
        f"{'Long' if is_long else 'Short'} position with "
        f"{recommend_leverage(risk_percentage)} leverage. "
        f"Position based on mean reversion expectation within {tier} tier "
        f"correlation patterns. "
        f"Entry should be executed during current deviation period with tight "
        f"risk management."
    )
