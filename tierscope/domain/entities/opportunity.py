"""
Trading Opportunity Entity - Signals derived from tier deviations.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class OpportunityType(str, Enum):
    """Direction of a trading opportunity."""

    LONG = "long"
    SHORT = "short"
    ARBITRAGE = "arbitrage"  # reserved, never produced by detection


class RiskLevel(str, Enum):
    """Risk bucket derived from the composite risk percentage."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class RiskComponents:
    """Four independent risk sub-scores, each nominally in [0, 100]."""

    volatility_risk: float
    correlation_risk: float
    volume_risk: float
    trend_risk: float

    @property
    def composite(self) -> float:
        """Unweighted mean of the four sub-scores."""
        return (
            self.volatility_risk
            + self.correlation_risk
            + self.volume_risk
            + self.trend_risk
        ) / 4


@dataclass
class OpportunityAnalysis:
    """Structured explanation attached to an opportunity."""

    volatility_risk: float
    correlation_risk: float
    volume_risk: float
    trend_risk: float
    statistical_significance: float
    historical_success_rate: float
    explanation: str = ""
    strategy: str = ""
    entry_point: str = ""
    exit_point: str = ""
    stop_loss: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "volatility_risk": self.volatility_risk,
            "correlation_risk": self.correlation_risk,
            "volume_risk": self.volume_risk,
            "trend_risk": self.trend_risk,
            "statistical_significance": self.statistical_significance,
            "historical_success_rate": self.historical_success_rate,
            "explanation": self.explanation,
            "strategy": self.strategy,
            "entry_point": self.entry_point,
            "exit_point": self.exit_point,
            "stop_loss": self.stop_loss,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OpportunityAnalysis":
        """Create from dictionary."""
        return cls(
            volatility_risk=float(data.get("volatility_risk", 0)),
            correlation_risk=float(data.get("correlation_risk", 0)),
            volume_risk=float(data.get("volume_risk", 0)),
            trend_risk=float(data.get("trend_risk", 0)),
            statistical_significance=float(data.get("statistical_significance", 0)),
            historical_success_rate=float(data.get("historical_success_rate", 0)),
            explanation=data.get("explanation", ""),
            strategy=data.get("strategy", ""),
            entry_point=data.get("entry_point", ""),
            exit_point=data.get("exit_point", ""),
            stop_loss=data.get("stop_loss", ""),
        )


@dataclass
class TradingOpportunity:
    """
    A ranked, risk-scored trading signal.

    Attributes:
        cryptocurrency_id: Id of the originating token (None if since deleted)
        symbol: Token symbol at detection time
        tier: Tier value at detection time
        opportunity_type: long or short
        risk_level: low, medium or high
        risk_percentage: Composite risk in [0, 100]
        leverage_recommendation: Leverage band (e.g., "3-5x")
        expected_return: Expected return in percent
        confidence: Confidence in [0, 100]
        analysis: Sub-scores and human-readable guidance
        id: Storage-assigned id
        is_active: False once explicitly deactivated
        created_at: Detection time
        expires_at: Time after which the signal is stale
    """

    cryptocurrency_id: Optional[int]
    symbol: str
    tier: str
    opportunity_type: OpportunityType
    risk_level: RiskLevel
    risk_percentage: float
    leverage_recommendation: str
    expected_return: float
    confidence: float
    analysis: OpportunityAnalysis
    id: Optional[int] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.now)
    expires_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not 0 <= self.confidence <= 100:
            raise ValueError(f"confidence out of range: {self.confidence}")
        if not 0 <= self.risk_percentage <= 100:
            raise ValueError(f"risk_percentage out of range: {self.risk_percentage}")

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check whether the expiration time has passed."""
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or datetime.now())

    def is_live(self, now: Optional[datetime] = None) -> bool:
        """Active and not expired."""
        return self.is_active and not self.is_expired(now)

    def stamped(self, created_at: datetime) -> "TradingOpportunity":
        """Copy created at `created_at`, expiry shifted to keep the same lifetime."""
        expires_at = None
        if self.expires_at is not None:
            expires_at = created_at + (self.expires_at - self.created_at)
        return replace(self, created_at=created_at, expires_at=expires_at)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for storage/transport."""
        return {
            "id": self.id,
            "cryptocurrency_id": self.cryptocurrency_id,
            "symbol": self.symbol,
            "tier": self.tier,
            "opportunity_type": self.opportunity_type.value,
            "risk_level": self.risk_level.value,
            "risk_percentage": self.risk_percentage,
            "leverage_recommendation": self.leverage_recommendation,
            "expected_return": self.expected_return,
            "confidence": self.confidence,
            "analysis": self.analysis.to_dict(),
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TradingOpportunity":
        """Create from dictionary."""
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        elif created_at is None:
            created_at = datetime.now()

        expires_at = data.get("expires_at")
        if isinstance(expires_at, str):
            expires_at = datetime.fromisoformat(expires_at)

        opportunity_id = data.get("id")
        crypto_id = data.get("cryptocurrency_id")

        return cls(
            id=int(opportunity_id) if opportunity_id is not None else None,
            cryptocurrency_id=int(crypto_id) if crypto_id is not None else None,
            symbol=data.get("symbol", ""),
            tier=data.get("tier", ""),
            opportunity_type=OpportunityType(data["opportunity_type"]),
            risk_level=RiskLevel(data["risk_level"]),
            risk_percentage=float(data["risk_percentage"]),
            leverage_recommendation=data.get("leverage_recommendation", ""),
            expected_return=float(data.get("expected_return", 0)),
            confidence=float(data["confidence"]),
            analysis=OpportunityAnalysis.from_dict(data.get("analysis") or {}),
            is_active=bool(data.get("is_active", True)),
            created_at=created_at,
            expires_at=expires_at,
        )

    @property
    def summary(self) -> str:
        """Get a summary string for logging."""
        return (
            f"{self.symbol}: {self.opportunity_type.value.upper()} "
            f"({self.confidence:.1f}% confidence, {self.risk_level.value} risk, "
            f"{self.leverage_recommendation})"
        )
