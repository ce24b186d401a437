"""
Shared test fixtures.
"""

from decimal import Decimal

import pytest

from tierscope.domain.entities.token import Tier, TokenSnapshot


@pytest.fixture
def make_token():
    """Factory for TokenSnapshots with sensible large-tier defaults."""

    def _make(
        symbol: str,
        change: str,
        tier: Tier = Tier.LARGE,
        token_id: int = None,
        market_cap: str = "20000000000",
        volume: str = "2000000000",
        price: str = "10",
        coingecko_id: str = None,
    ) -> TokenSnapshot:
        return TokenSnapshot(
            id=token_id,
            symbol=symbol,
            name=symbol.title(),
            current_price=Decimal(price),
            market_cap=Decimal(market_cap),
            volume_24h=Decimal(volume),
            price_change_percentage_24h=Decimal(change),
            tier=tier,
            metadata={"coingecko_id": coingecko_id} if coingecko_id else {},
        )

    return _make
