"""
Token Entity - A cryptocurrency's market state at a point in time.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional


class DataIntegrityError(ValueError):
    """Raised when market data violates an invariant (upstream ingestion bug)."""


class Tier(str, Enum):
    """Market-capitalization buckets, largest first."""

    MEGA = "mega"
    LARGE = "large"
    LARGE_MEDIUM = "largeMedium"
    SMALL_MEDIUM = "smallMedium"
    SMALL = "small"
    MICRO = "micro"

    @classmethod
    def ordered(cls) -> list["Tier"]:
        """Tiers from largest to smallest market cap."""
        return [
            cls.MEGA,
            cls.LARGE,
            cls.LARGE_MEDIUM,
            cls.SMALL_MEDIUM,
            cls.SMALL,
            cls.MICRO,
        ]


# Inclusive lower bounds in USD, checked top-down
TIER_THRESHOLDS: list[tuple[Tier, Decimal]] = [
    (Tier.MEGA, Decimal("100000000000")),
    (Tier.LARGE, Decimal("10000000000")),
    (Tier.LARGE_MEDIUM, Decimal("5000000000")),
    (Tier.SMALL_MEDIUM, Decimal("1000000000")),
    (Tier.SMALL, Decimal("100000000")),
    (Tier.MICRO, Decimal("0")),
]


def to_decimal(value: Any, default: str = "0") -> Decimal:
    """Convert provider/storage values (str, int, float, None) to Decimal."""
    if value is None or value == "":
        return Decimal(default)
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise DataIntegrityError(f"Not a decimal value: {value!r}") from e


def determine_tier(market_cap: Any) -> Tier:
    """
    Classify a market capitalization into its tier.

    Args:
        market_cap: Market cap in USD (Decimal, int, float or numeric string)

    Returns:
        The tier whose inclusive lower bound the market cap reaches.

    Raises:
        DataIntegrityError: If market cap is negative or not a finite number.
    """
    cap = to_decimal(market_cap)
    if not cap.is_finite() or cap < 0:
        raise DataIntegrityError(f"Invalid market cap for tiering: {market_cap!r}")

    for tier, lower_bound in TIER_THRESHOLDS:
        if cap >= lower_bound:
            return tier
    return Tier.MICRO


@dataclass
class TokenSnapshot:
    """
    One cryptocurrency's market state.

    Attributes:
        id: Storage-assigned id (None until first upsert)
        symbol: Ticker symbol, unique across the universe (e.g., "BTC")
        name: Display name (e.g., "Bitcoin")
        current_price: Price in USD
        market_cap: Market capitalization in USD
        market_cap_rank: Provider rank by market cap
        volume_24h: 24-hour trading volume in USD
        price_change_24h: Absolute 24-hour price change in USD
        price_change_percentage_24h: 24-hour price change in percent
        tier: Market-cap tier assigned from market_cap
        logo_url: Provider image URL
        last_updated: When the snapshot was last written
        metadata: Free-form provider data (e.g., coingecko_id)
    """

    symbol: str
    name: str
    current_price: Decimal
    market_cap: Decimal
    tier: Tier
    id: Optional[int] = None
    market_cap_rank: Optional[int] = None
    volume_24h: Decimal = Decimal("0")
    price_change_24h: Decimal = Decimal("0")
    price_change_percentage_24h: Decimal = Decimal("0")
    logo_url: Optional[str] = None
    last_updated: datetime = field(default_factory=datetime.now)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def change_pct(self) -> float:
        """24h percentage change as float for scoring math."""
        return float(self.price_change_percentage_24h)

    def validate(self) -> None:
        """
        Check invariants required by the analysis engine.

        Raises:
            DataIntegrityError: On empty symbol, non-finite or negative market
                figures.
        """
        if not self.symbol or not self.symbol.strip():
            raise DataIntegrityError(f"Token {self.id} has an empty symbol")
        for name in ("current_price", "market_cap", "volume_24h", "price_change_percentage_24h"):
            value = getattr(self, name)
            if not value.is_finite():
                raise DataIntegrityError(f"{self.symbol}: non-finite {name} {value}")
        if self.market_cap < 0:
            raise DataIntegrityError(f"{self.symbol}: negative market cap {self.market_cap}")
        if self.volume_24h < 0:
            raise DataIntegrityError(f"{self.symbol}: negative volume {self.volume_24h}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for storage/transport."""
        return {
            "id": self.id,
            "symbol": self.symbol,
            "name": self.name,
            "current_price": str(self.current_price),
            "market_cap": str(self.market_cap),
            "market_cap_rank": self.market_cap_rank,
            "volume_24h": str(self.volume_24h),
            "price_change_24h": str(self.price_change_24h),
            "price_change_percentage_24h": str(self.price_change_percentage_24h),
            "tier": self.tier.value,
            "logo_url": self.logo_url,
            "last_updated": self.last_updated.isoformat(),
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TokenSnapshot":
        """Create from dictionary."""
        last_updated = data.get("last_updated")
        if isinstance(last_updated, str):
            last_updated = datetime.fromisoformat(last_updated)
        elif last_updated is None:
            last_updated = datetime.now()

        token_id = data.get("id")
        rank = data.get("market_cap_rank")

        return cls(
            id=int(token_id) if token_id is not None else None,
            symbol=data.get("symbol", ""),
            name=data.get("name", ""),
            current_price=to_decimal(data.get("current_price")),
            market_cap=to_decimal(data.get("market_cap")),
            market_cap_rank=int(rank) if rank is not None else None,
            volume_24h=to_decimal(data.get("volume_24h")),
            price_change_24h=to_decimal(data.get("price_change_24h")),
            price_change_percentage_24h=to_decimal(data.get("price_change_percentage_24h")),
            tier=Tier(data.get("tier", Tier.MICRO.value)),
            logo_url=data.get("logo_url"),
            last_updated=last_updated,
            metadata=data.get("metadata") or {},
        )

    @property
    def summary(self) -> str:
        """Get a summary string for logging."""
        return (
            f"{self.symbol} ({self.tier.value}): ${self.current_price}, "
            f"24h={self.change_pct:+.2f}%"
        )


@dataclass
class TierStats:
    """Tokens sharing a tier plus their mean 24h change. Derived, never stored."""

    tier: Tier
    members: list[TokenSnapshot] = field(default_factory=list)
    mean_change_24h: Decimal = Decimal("0")

    @property
    def count(self) -> int:
        return len(self.members)
