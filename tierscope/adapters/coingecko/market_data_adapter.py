"""
CoinGecko Market Data Adapter - Implements MarketDataPort.

API Documentation: https://www.coingecko.com/en/api/documentation
Free tier: roughly 30 calls/minute, pages of up to 250 coins.
"""

import asyncio
from datetime import datetime
from typing import Any, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from tierscope.domain.entities.token import TokenSnapshot, determine_tier, to_decimal
from tierscope.domain.ports.market_data_port import MarketDataPort
from tierscope.infrastructure.config import Settings
from tierscope.infrastructure.logging import get_logger

logger = get_logger(__name__)


class CoinGeckoAPIError(Exception):
    """Exception for CoinGecko API errors."""

    def __init__(self, status_code: int, message: str, url: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.url = url
        super().__init__(f"CoinGecko API Error [{status_code}]: {message}")


def to_token_snapshot(record: dict[str, Any]) -> TokenSnapshot:
    """
    Map a /coins/markets record to a TokenSnapshot.

    Missing price changes default to zero; the tier is assigned from
    the market cap.
    """
    market_cap = to_decimal(record.get("market_cap"))
    rank = record.get("market_cap_rank")

    return TokenSnapshot(
        symbol=str(record.get("symbol", "")).upper(),
        name=record.get("name", ""),
        current_price=to_decimal(record.get("current_price")),
        market_cap=market_cap,
        market_cap_rank=int(rank) if rank is not None else None,
        volume_24h=to_decimal(record.get("total_volume")),
        price_change_24h=to_decimal(record.get("price_change_24h")),
        price_change_percentage_24h=to_decimal(record.get("price_change_percentage_24h")),
        tier=determine_tier(market_cap),
        logo_url=record.get("image"),
        metadata={
            "coingecko_id": record.get("id"),
            "last_api_update": datetime.now().isoformat(),
        },
    )


class CoinGeckoMarketDataAdapter(MarketDataPort):
    """
    CoinGecko implementation of MarketDataPort.

    Pages through /coins/markets ordered by market cap until a short page
    or the configured token limit is reached.
    """

    TIMEOUT = 15.0

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the adapter.

        Args:
            settings: Application settings with CoinGecko configuration.
            transport: Optional HTTP transport override.
        """
        self.settings = settings
        self.base_url = settings.coingecko_base_url.rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating it on first use."""
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self.settings.coingecko_api_key:
                headers["x-cg-demo-api-key"] = self.settings.coingecko_api_key
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.TIMEOUT),
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        """
        GET a CoinGecko endpoint and return the parsed JSON body.

        Raises:
            CoinGeckoAPIError: On a non-2xx response.
        """
        url = f"{self.base_url}{path}"
        logger.debug("GET request", url=url, params=params)

        response = await self.client.get(url, params=params)
        if response.status_code >= 400:
            if response.status_code == 429:
                logger.warning("CoinGecko rate limit exceeded", url=url)
            raise CoinGeckoAPIError(response.status_code, response.text[:200], url=url)
        return response.json()

    async def get_market_page(self, page: int, per_page: int) -> list[dict[str, Any]]:
        """Fetch one page of /coins/markets records."""
        return await self._get(
            "/coins/markets",
            params={
                "vs_currency": "usd",
                "order": "market_cap_desc",
                "per_page": per_page,
                "page": page,
                "sparkline": "false",
                "price_change_percentage": "24h",
            },
        )

    async def get_market_snapshot(self) -> list[TokenSnapshot]:
        per_page = self.settings.page_size
        limit = self.settings.max_tokens
        records: list[dict[str, Any]] = []
        page = 1

        while len(records) < limit:
            try:
                data = await self.get_market_page(page, per_page)
            except (CoinGeckoAPIError, httpx.HTTPError) as e:
                logger.error(
                    "Failed to fetch market page",
                    page=page,
                    fetched=len(records),
                    error=str(e),
                )
                break

            if not data:
                break

            records.extend(data)
            if len(data) < per_page:
                break

            page += 1
            if self.settings.request_delay_seconds > 0:
                await asyncio.sleep(self.settings.request_delay_seconds)

        tokens = []
        for record in records[:limit]:
            if record.get("market_cap") is None:
                logger.debug("Skipping record without market cap", coin=record.get("id"))
                continue
            tokens.append(to_token_snapshot(record))

        logger.info("Fetched market snapshot", tokens=len(tokens), pages=page)
        return tokens

    async def get_price_history(
        self,
        coin_id: str,
        days: int = 30,
    ) -> list[tuple[int, float]]:
        data = await self._get(
            f"/coins/{coin_id}/market_chart",
            params={
                "vs_currency": "usd",
                "days": days,
                "interval": "daily" if days > 1 else "hourly",
            },
        )
        prices = data.get("prices", []) if isinstance(data, dict) else []
        return [(int(ts), float(price)) for ts, price in prices]
