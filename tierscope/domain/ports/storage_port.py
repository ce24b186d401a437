"""
Storage Port - Interface for market data persistence.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from tierscope.domain.entities.market_stats import CorrelationRecord
from tierscope.domain.entities.opportunity import TradingOpportunity
from tierscope.domain.entities.token import Tier, TokenSnapshot


class MarketStoragePort(ABC):
    """
    Port interface for token, opportunity and correlation storage.

    Implementations:
        - InMemoryStorageAdapter: process-local maps with auto-increment ids
        - JSONStorageAdapter: local JSON file for development
        - DynamoDBStorageAdapter: AWS DynamoDB tables
    """

    # Tokens

    @abstractmethod
    async def get_all_tokens(self) -> list[TokenSnapshot]:
        """
        Retrieve every stored token.

        Returns:
            Snapshot copies in insertion (id) order.
        """
        ...

    @abstractmethod
    async def get_tokens_by_tier(self, tier: Tier) -> list[TokenSnapshot]:
        """Retrieve tokens in a single tier."""
        ...

    @abstractmethod
    async def get_token_by_symbol(self, symbol: str) -> Optional[TokenSnapshot]:
        """Retrieve a token by its symbol, or None."""
        ...

    @abstractmethod
    async def upsert_token(self, token: TokenSnapshot) -> TokenSnapshot:
        """
        Insert or update a token keyed by symbol.

        Args:
            token: Snapshot from ingestion (id ignored)

        Returns:
            Stored snapshot with its id and refreshed last_updated.
        """
        ...

    # Opportunities

    @abstractmethod
    async def get_all_opportunities(self) -> list[TradingOpportunity]:
        """Retrieve all opportunities, including inactive and expired ones."""
        ...

    @abstractmethod
    async def get_active_opportunities(
        self,
        now: Optional[datetime] = None,
    ) -> list[TradingOpportunity]:
        """
        Retrieve opportunities that are active and not expired.

        Args:
            now: Reference time (defaults to current time)
        """
        ...

    @abstractmethod
    async def create_opportunity(self, opportunity: TradingOpportunity) -> TradingOpportunity:
        """
        Store a new opportunity.

        Returns:
            Stored opportunity with assigned id, created_at and is_active=True.
        """
        ...

    @abstractmethod
    async def deactivate_opportunity(self, opportunity_id: int) -> bool:
        """
        Mark an opportunity inactive.

        Returns:
            True if the opportunity existed.
        """
        ...

    # Correlations

    @abstractmethod
    async def get_latest_correlations(self) -> list[CorrelationRecord]:
        """Retrieve stored tier correlations."""
        ...

    @abstractmethod
    async def create_correlation(self, record: CorrelationRecord) -> CorrelationRecord:
        """Store a correlation record and return it with its id."""
        ...
