"""
CoinGecko adapters package.
"""

from tierscope.adapters.coingecko.market_data_adapter import (
    CoinGeckoAPIError,
    CoinGeckoMarketDataAdapter,
    to_token_snapshot,
)

__all__ = ["CoinGeckoAPIError", "CoinGeckoMarketDataAdapter", "to_token_snapshot"]
