"""
Tests for domain entities.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from tierscope.domain.entities.market_stats import CorrelationRecord, MarketStats
from tierscope.domain.entities.opportunity import (
    OpportunityAnalysis,
    OpportunityType,
    RiskComponents,
    RiskLevel,
    TradingOpportunity,
)
from tierscope.domain.entities.token import (
    DataIntegrityError,
    Tier,
    TokenSnapshot,
    determine_tier,
)


def make_opportunity(**overrides) -> TradingOpportunity:
    fields = dict(
        cryptocurrency_id=1,
        symbol="SOL",
        tier="large",
        opportunity_type=OpportunityType.LONG,
        risk_level=RiskLevel.LOW,
        risk_percentage=25.0,
        leverage_recommendation="5-7x",
        expected_return=3.0,
        confidence=75.0,
        analysis=OpportunityAnalysis(
            volatility_risk=25.0,
            correlation_risk=20.0,
            volume_risk=30.0,
            trend_risk=25.0,
            statistical_significance=1.2,
            historical_success_rate=75.0,
        ),
        created_at=datetime(2024, 1, 1, 12, 0),
        expires_at=datetime(2024, 1, 2, 12, 0),
    )
    fields.update(overrides)
    return TradingOpportunity(**fields)


class TestDetermineTier:
    """Tests for market-cap tiering."""

    @pytest.mark.parametrize(
        "market_cap,expected",
        [
            (Decimal("100000000000"), Tier.MEGA),
            (Decimal("99999999999.99"), Tier.LARGE),
            (99_999_999_999, Tier.LARGE),
            (Decimal("10000000000"), Tier.LARGE),
            (Decimal("5000000000"), Tier.LARGE_MEDIUM),
            (Decimal("4999999999"), Tier.SMALL_MEDIUM),
            (Decimal("1000000000"), Tier.SMALL_MEDIUM),
            (Decimal("100000000"), Tier.SMALL),
            (Decimal("99999999"), Tier.MICRO),
            (Decimal("0"), Tier.MICRO),
        ],
    )
    def test_boundaries_are_inclusive_lower_bounds(self, market_cap, expected):
        """Test each threshold belongs to the tier it opens."""
        assert determine_tier(market_cap) == expected

    def test_accepts_numeric_strings_and_floats(self):
        """Test provider values are converted before tiering."""
        assert determine_tier("150000000000") == Tier.MEGA
        assert determine_tier(2.5e9) == Tier.SMALL_MEDIUM

    def test_negative_market_cap_rejected(self):
        """Test negative market cap raises instead of tiering."""
        with pytest.raises(DataIntegrityError):
            determine_tier(Decimal("-1"))

    def test_non_finite_market_cap_rejected(self):
        """Test NaN market cap raises."""
        with pytest.raises(DataIntegrityError):
            determine_tier("NaN")

    def test_ordered_lists_largest_first(self):
        """Test canonical tier order."""
        assert [t.value for t in Tier.ordered()] == [
            "mega", "large", "largeMedium", "smallMedium", "small", "micro",
        ]


class TestTokenSnapshot:
    """Tests for TokenSnapshot entity."""

    def test_round_trip_preserves_decimals(self):
        """Test to_dict/from_dict keeps full decimal precision."""
        token = TokenSnapshot(
            id=7,
            symbol="ETH",
            name="Ethereum",
            current_price=Decimal("3123.456789"),
            market_cap=Decimal("375000000000"),
            price_change_percentage_24h=Decimal("-1.2345"),
            tier=Tier.MEGA,
            metadata={"coingecko_id": "ethereum"},
        )

        restored = TokenSnapshot.from_dict(token.to_dict())

        assert restored.id == 7
        assert restored.current_price == Decimal("3123.456789")
        assert restored.price_change_percentage_24h == Decimal("-1.2345")
        assert restored.tier == Tier.MEGA
        assert restored.metadata == {"coingecko_id": "ethereum"}

    def test_change_pct_is_float(self):
        """Test change_pct exposes the 24h change as float."""
        token = TokenSnapshot(
            symbol="BTC",
            name="Bitcoin",
            current_price=Decimal("1"),
            market_cap=Decimal("1"),
            price_change_percentage_24h=Decimal("2.5"),
            tier=Tier.MICRO,
        )
        assert token.change_pct == 2.5

    def test_validate_rejects_empty_symbol(self):
        """Test empty symbols are an integrity error."""
        token = TokenSnapshot(
            symbol=" ",
            name="Blank",
            current_price=Decimal("1"),
            market_cap=Decimal("1"),
            tier=Tier.MICRO,
        )
        with pytest.raises(DataIntegrityError):
            token.validate()

    def test_validate_rejects_negative_volume(self):
        """Test negative volume is an integrity error."""
        token = TokenSnapshot(
            symbol="BAD",
            name="Bad",
            current_price=Decimal("1"),
            market_cap=Decimal("1"),
            volume_24h=Decimal("-5"),
            tier=Tier.MICRO,
        )
        with pytest.raises(DataIntegrityError):
            token.validate()

    def test_validate_rejects_non_finite_figures(self):
        """Test NaN figures are integrity errors."""
        for field_name in ("current_price", "market_cap", "volume_24h", "price_change_percentage_24h"):
            token = TokenSnapshot(
                symbol="ODD",
                name="Odd",
                current_price=Decimal("1"),
                market_cap=Decimal("1"),
                tier=Tier.MICRO,
            )
            setattr(token, field_name, Decimal("NaN"))
            with pytest.raises(DataIntegrityError):
                token.validate()


class TestRiskComponents:
    """Tests for RiskComponents entity."""

    def test_composite_is_unweighted_mean(self):
        """Test composite risk averages the four sub-scores."""
        risk = RiskComponents(
            volatility_risk=25.0,
            correlation_risk=40.0,
            volume_risk=30.0,
            trend_risk=24.0,
        )
        assert risk.composite == pytest.approx(29.75)


class TestTradingOpportunity:
    """Tests for TradingOpportunity entity."""

    def test_confidence_out_of_range_rejected(self):
        """Test confidence above 100 is refused."""
        with pytest.raises(ValueError):
            make_opportunity(confidence=101.0)

    def test_risk_out_of_range_rejected(self):
        """Test negative risk is refused."""
        with pytest.raises(ValueError):
            make_opportunity(risk_percentage=-0.1)

    def test_is_live_requires_active_and_unexpired(self):
        """Test liveness honours both the flag and the expiry."""
        opportunity = make_opportunity()
        before = datetime(2024, 1, 2, 11, 59)
        after = datetime(2024, 1, 2, 12, 0)

        assert opportunity.is_live(before)
        assert not opportunity.is_live(after)

        opportunity.is_active = False
        assert not opportunity.is_live(before)

    def test_round_trip(self):
        """Test to_dict/from_dict restores enums, analysis and timestamps."""
        opportunity = make_opportunity(id=3, opportunity_type=OpportunityType.SHORT)

        restored = TradingOpportunity.from_dict(opportunity.to_dict())

        assert restored.id == 3
        assert restored.opportunity_type == OpportunityType.SHORT
        assert restored.risk_level == RiskLevel.LOW
        assert restored.analysis.statistical_significance == 1.2
        assert restored.expires_at - restored.created_at == timedelta(hours=24)

    def test_summary(self):
        """Test summary string for logging."""
        assert make_opportunity().summary == "SOL: LONG (75.0% confidence, low risk, 5-7x)"


class TestMarketEntities:
    """Tests for MarketStats and CorrelationRecord."""

    def test_market_stats_defaults(self):
        """Test empty stats are neutral zeros."""
        stats = MarketStats()
        assert stats.to_dict()["market_trend"] == "neutral"
        assert stats.to_dict()["active_opportunities"] == 0

    def test_correlation_record_round_trip(self):
        """Test correlation records survive serialization."""
        record = CorrelationRecord(tier1="mega", tier2="large", correlation=0.8123, timeframe="7d", id=2)
        restored = CorrelationRecord.from_dict(record.to_dict())
        assert restored == record

