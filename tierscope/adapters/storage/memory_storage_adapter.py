"""In-memory storage adapter with auto-increment ids."""

import asyncio
import copy
from datetime import datetime
from typing import Optional

import structlog

from tierscope.domain.entities.market_stats import CorrelationRecord
from tierscope.domain.entities.opportunity import TradingOpportunity
from tierscope.domain.entities.token import Tier, TokenSnapshot
from tierscope.domain.ports.storage_port import MarketStoragePort

logger = structlog.get_logger()


class InMemoryStorageAdapter(MarketStoragePort):
    """
    Process-local storage.

    Writes are serialized by a lock and reads return deep copies, so a
    detection run always works on a consistent snapshot.
    """

    def __init__(self) -> None:
        self._tokens: dict[int, TokenSnapshot] = {}
        self._opportunities: dict[int, TradingOpportunity] = {}
        self._correlations: dict[int, CorrelationRecord] = {}
        self._next_token_id = 1
        self._next_opportunity_id = 1
        self._next_correlation_id = 1
        self._lock = asyncio.Lock()

    async def get_all_tokens(self) -> list[TokenSnapshot]:
        async with self._lock:
            return copy.deepcopy(list(self._tokens.values()))

    async def get_tokens_by_tier(self, tier: Tier) -> list[TokenSnapshot]:
        tokens = await self.get_all_tokens()
        return [t for t in tokens if t.tier == tier]

    async def get_token_by_symbol(self, symbol: str) -> Optional[TokenSnapshot]:
        async with self._lock:
            for token in self._tokens.values():
                if token.symbol == symbol:
                    return copy.deepcopy(token)
        return None

    async def upsert_token(self, token: TokenSnapshot) -> TokenSnapshot:
        async with self._lock:
            stored = copy.deepcopy(token)
            stored.last_updated = datetime.now()

            existing_id = next(
                (tid for tid, t in self._tokens.items() if t.symbol == token.symbol),
                None,
            )
            if existing_id is None:
                stored.id = self._next_token_id
                self._next_token_id += 1
                logger.debug("inserted_token", symbol=stored.symbol, id=stored.id)
            else:
                stored.id = existing_id

            self._tokens[stored.id] = stored
            return copy.deepcopy(stored)

    async def get_all_opportunities(self) -> list[TradingOpportunity]:
        async with self._lock:
            return copy.deepcopy(list(self._opportunities.values()))

    async def get_active_opportunities(
        self,
        now: Optional[datetime] = None,
    ) -> list[TradingOpportunity]:
        now = now or datetime.now()
        opportunities = await self.get_all_opportunities()
        return [o for o in opportunities if o.is_live(now)]

    async def create_opportunity(self, opportunity: TradingOpportunity) -> TradingOpportunity:
        async with self._lock:
            stored = copy.deepcopy(opportunity).stamped(datetime.now())
            stored.id = self._next_opportunity_id
            self._next_opportunity_id += 1
            stored.is_active = True
            self._opportunities[stored.id] = stored
            return copy.deepcopy(stored)

    async def deactivate_opportunity(self, opportunity_id: int) -> bool:
        async with self._lock:
            opportunity = self._opportunities.get(opportunity_id)
            if opportunity is None:
                return False
            opportunity.is_active = False
            return True

    async def get_latest_correlations(self) -> list[CorrelationRecord]:
        async with self._lock:
            return copy.deepcopy(list(self._correlations.values()))

    async def create_correlation(self, record: CorrelationRecord) -> CorrelationRecord:
        async with self._lock:
            stored = copy.deepcopy(record)
            stored.id = self._next_correlation_id
            self._next_correlation_id += 1
            stored.calculated_at = datetime.now()
            self._correlations[stored.id] = stored
            return copy.deepcopy(stored)
