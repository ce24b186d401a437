"""
Tests for market statistics and the market update payload.
"""

import json
from datetime import datetime

import pytest

from tierscope.application.services.market_stats import MarketStatsService, build_market_update
from tierscope.domain.entities.market_stats import CorrelationRecord
from tierscope.domain.entities.token import Tier


@pytest.fixture
def universe(make_token):
    return [
        make_token("BTC", "4", tier=Tier.MEGA, market_cap="600"),
        make_token("ETH", "2", tier=Tier.MEGA, market_cap="300"),
        make_token("DOGE", "3", tier=Tier.SMALL, market_cap="100"),
    ]


class TestMarketStatsService:
    """Tests for MarketStatsService."""

    def test_total_and_dominance(self, universe):
        service = MarketStatsService()
        assert service.total_market_cap(universe) == 1000.0
        assert service.btc_dominance(universe) == pytest.approx(60.0)

    def test_dominance_without_btc(self, universe):
        assert MarketStatsService().btc_dominance(universe[1:]) == 0.0

    def test_trend_thresholds(self, make_token):
        """Test trend is bullish only strictly above +2 and bearish strictly below -2."""
        service = MarketStatsService()
        assert service.market_trend([make_token("A", "2")]) == "neutral"
        assert service.market_trend([make_token("A", "2.1")]) == "bullish"
        assert service.market_trend([make_token("A", "-2.1")]) == "bearish"
        assert service.market_trend([]) == "neutral"

    def test_tier_distribution(self, universe):
        assert MarketStatsService().tier_distribution(universe) == {"mega": 2, "small": 1}

    def test_volatility_index_capped(self, make_token):
        service = MarketStatsService()
        assert service.volatility_index([make_token("A", "3"), make_token("B", "-3")]) == pytest.approx(30.0)
        assert service.volatility_index([make_token("A", "25")]) == 100.0
        assert service.volatility_index([]) == 0.0

    def test_build(self, universe):
        stats = MarketStatsService().build(universe)

        assert stats.market_trend == "bullish"
        assert stats.active_opportunities == 0
        assert stats.volatility_index == pytest.approx(30.0)


class TestBuildMarketUpdate:
    """Tests for the marketUpdate payload."""

    def test_payload_shape_is_json_safe(self, universe):
        stats = MarketStatsService().build(universe)
        correlations = [CorrelationRecord(tier1="mega", tier2="small", correlation=0.5, timeframe="24h")]
        now = datetime(2024, 5, 1, 8, 0)

        payload = build_market_update(universe, [], correlations, stats, now=now)

        assert payload["type"] == "marketUpdate"
        assert payload["timestamp"] == "2024-05-01T08:00:00"
        assert [c["symbol"] for c in payload["data"]["cryptocurrencies"]] == ["BTC", "ETH", "DOGE"]
        assert payload["data"]["btcDominance"] == pytest.approx(60.0)
        assert payload["data"]["marketTrend"] == "bullish"
        json.dumps(payload)
