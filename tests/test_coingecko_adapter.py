"""
Tests for the CoinGecko market data adapter.
"""

import asyncio
from decimal import Decimal

import httpx
import pytest

from tierscope.adapters.coingecko.market_data_adapter import (
    CoinGeckoAPIError,
    CoinGeckoMarketDataAdapter,
    to_token_snapshot,
)
from tierscope.domain.entities.token import Tier
from tierscope.infrastructure.config import Settings


def market_record(coin_id: str, market_cap: float = 2e10, change=1.5) -> dict:
    return {
        "id": coin_id,
        "symbol": coin_id[:3],
        "name": coin_id.title(),
        "current_price": 12.5,
        "market_cap": market_cap,
        "market_cap_rank": 10,
        "total_volume": 1e9,
        "price_change_24h": 0.2,
        "price_change_percentage_24h": change,
        "image": f"https://img.example/{coin_id}.png",
    }


def make_adapter(handler, **overrides) -> CoinGeckoMarketDataAdapter:
    settings = Settings(
        coingecko_base_url="https://api.test/api/v3",
        page_size=2,
        max_tokens=3,
        request_delay_seconds=0,
        **overrides,
    )
    return CoinGeckoMarketDataAdapter(settings, transport=httpx.MockTransport(handler))


class TestToTokenSnapshot:
    """Tests for record mapping."""

    def test_maps_fields(self):
        token = to_token_snapshot(market_record("solana"))

        assert token.symbol == "SOL"
        assert token.name == "Solana"
        assert token.tier == Tier.LARGE
        assert token.current_price == Decimal("12.5")
        assert token.volume_24h == Decimal("1000000000.0")
        assert token.logo_url == "https://img.example/solana.png"
        assert token.metadata["coingecko_id"] == "solana"
        assert "last_api_update" in token.metadata

    def test_missing_changes_default_to_zero(self):
        record = market_record("pepe", market_cap=5e7, change=None)
        record["price_change_24h"] = None

        token = to_token_snapshot(record)

        assert token.price_change_percentage_24h == Decimal("0")
        assert token.price_change_24h == Decimal("0")
        assert token.tier == Tier.MICRO


class TestGetMarketSnapshot:
    """Tests for paginated snapshot fetching."""

    def test_stops_at_max_tokens(self):
        pages = []

        def handler(request: httpx.Request) -> httpx.Response:
            page = int(request.url.params["page"])
            pages.append(page)
            assert request.url.params["per_page"] == "2"
            assert request.url.params["order"] == "market_cap_desc"
            return httpx.Response(200, json=[market_record(f"coin{page}a"), market_record(f"coin{page}b")])

        tokens = asyncio.run(make_adapter(handler).get_market_snapshot())

        assert pages == [1, 2]
        assert len(tokens) == 3

    def test_stops_on_short_page(self):
        pages = []

        def handler(request: httpx.Request) -> httpx.Response:
            pages.append(int(request.url.params["page"]))
            return httpx.Response(200, json=[market_record("bitcoin", market_cap=1.3e12)])

        tokens = asyncio.run(make_adapter(handler).get_market_snapshot())

        assert pages == [1]
        assert tokens[0].tier == Tier.MEGA

    def test_page_error_returns_what_was_fetched(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params["page"] == "2":
                return httpx.Response(500, text="boom")
            return httpx.Response(200, json=[market_record("alpha"), market_record("beta")])

        tokens = asyncio.run(make_adapter(handler).get_market_snapshot())

        assert [t.symbol for t in tokens] == ["ALP", "BET"]

    def test_api_key_header(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["x-cg-demo-api-key"] = request.headers.get("x-cg-demo-api-key")
            return httpx.Response(200, json=[])

        adapter = make_adapter(handler, coingecko_api_key="demo-key")

        assert asyncio.run(adapter.get_market_snapshot()) == []
        assert seen["x-cg-demo-api-key"] == "demo-key"


class TestGetPriceHistory:
    """Tests for price history."""

    def test_returns_points(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path.endswith("/coins/bitcoin/market_chart")
            assert request.url.params["interval"] == "daily"
            return httpx.Response(200, json={"prices": [[1700000000000, 35000.5], [1700086400000, 36000]]})

        history = asyncio.run(make_adapter(handler).get_price_history("bitcoin", days=7))

        assert history == [(1700000000000, 35000.5), (1700086400000, 36000.0)]

    def test_http_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="not found")

        with pytest.raises(CoinGeckoAPIError) as exc_info:
            asyncio.run(make_adapter(handler).get_price_history("nope"))

        assert exc_info.value.status_code == 404
