"""
Market Data Port - Interface for fetching market snapshots.
"""

from abc import ABC, abstractmethod

from tierscope.domain.entities.token import TokenSnapshot


class MarketDataPort(ABC):
    """
    Port interface for market data operations.

    Implementations:
        - CoinGeckoMarketDataAdapter: Fetches data from the CoinGecko API
    """

    @abstractmethod
    async def get_market_snapshot(self) -> list[TokenSnapshot]:
        """
        Fetch the current market state of the token universe.

        Returns:
            TokenSnapshots (without storage ids) ordered by market cap,
            each already tagged with its tier.
        """
        ...

    @abstractmethod
    async def get_price_history(
        self,
        coin_id: str,
        days: int = 30,
    ) -> list[tuple[int, float]]:
        """
        Fetch historical prices for a coin.

        Args:
            coin_id: Provider coin id (e.g., "bitcoin")
            days: Number of days of history

        Returns:
            List of (timestamp_ms, price) points, oldest first.
        """
        ...

    async def close(self) -> None:
        """Release network resources."""
        return None
