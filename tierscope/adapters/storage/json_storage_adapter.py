"""JSON file storage adapter for local development."""

import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import structlog

from tierscope.domain.entities.market_stats import CorrelationRecord
from tierscope.domain.entities.opportunity import TradingOpportunity
from tierscope.domain.entities.token import Tier, TokenSnapshot
from tierscope.domain.ports.storage_port import MarketStoragePort

logger = structlog.get_logger()

EMPTY_STORE: dict[str, Any] = {
    "tokens": {},
    "opportunities": {},
    "correlations": {},
    "counters": {"token": 0, "opportunity": 0, "correlation": 0},
}


class JSONStorageAdapter(MarketStoragePort):
    """Storage adapter using a single local JSON file."""

    def __init__(self, file_path: str = "data/market_store.json"):
        self.file_path = Path(file_path)
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()
        self._ensure_file_exists()

    def _ensure_file_exists(self) -> None:
        """Create the JSON file if it doesn't exist."""
        if not self.file_path.exists():
            self._write_data(json.loads(json.dumps(EMPTY_STORE)))
            logger.info("created_json_storage_file", path=str(self.file_path))

    def _read_data(self) -> dict[str, Any]:
        """Read all data from JSON file."""
        try:
            with open(self.file_path, "r") as f:
                data = json.load(f)
        except (json.JSONDecodeError, FileNotFoundError):
            data = {}
        for key, default in EMPTY_STORE.items():
            data.setdefault(key, json.loads(json.dumps(default)))
        return data

    def _write_data(self, data: dict[str, Any]) -> None:
        """Write all data to JSON file."""
        with open(self.file_path, "w") as f:
            json.dump(data, f, indent=2, default=str)

    def _next_id(self, data: dict[str, Any], counter: str) -> int:
        data["counters"][counter] = int(data["counters"].get(counter, 0)) + 1
        return data["counters"][counter]

    # Tokens

    async def get_all_tokens(self) -> list[TokenSnapshot]:
        data = self._read_data()
        tokens = [TokenSnapshot.from_dict(item) for item in data["tokens"].values()]
        tokens.sort(key=lambda t: t.id or 0)
        return tokens

    async def get_tokens_by_tier(self, tier: Tier) -> list[TokenSnapshot]:
        return [t for t in await self.get_all_tokens() if t.tier == tier]

    async def get_token_by_symbol(self, symbol: str) -> Optional[TokenSnapshot]:
        data = self._read_data()
        item = data["tokens"].get(symbol)
        return TokenSnapshot.from_dict(item) if item else None

    async def upsert_token(self, token: TokenSnapshot) -> TokenSnapshot:
        async with self._lock:
            data = self._read_data()
            existing = data["tokens"].get(token.symbol)

            item = token.to_dict()
            item["id"] = existing["id"] if existing else self._next_id(data, "token")
            item["last_updated"] = datetime.now().isoformat()
            data["tokens"][token.symbol] = item
            self._write_data(data)

            logger.debug("saved_token_to_json", symbol=token.symbol, id=item["id"])
            return TokenSnapshot.from_dict(item)

    # Opportunities

    async def get_all_opportunities(self) -> list[TradingOpportunity]:
        data = self._read_data()
        opportunities = [TradingOpportunity.from_dict(item) for item in data["opportunities"].values()]
        opportunities.sort(key=lambda o: o.id or 0)
        return opportunities

    async def get_active_opportunities(
        self,
        now: Optional[datetime] = None,
    ) -> list[TradingOpportunity]:
        now = now or datetime.now()
        return [o for o in await self.get_all_opportunities() if o.is_live(now)]

    async def create_opportunity(self, opportunity: TradingOpportunity) -> TradingOpportunity:
        async with self._lock:
            data = self._read_data()
            item = opportunity.stamped(datetime.now()).to_dict()
            item["id"] = self._next_id(data, "opportunity")
            item["is_active"] = True
            data["opportunities"][str(item["id"])] = item
            self._write_data(data)
            return TradingOpportunity.from_dict(item)

    async def deactivate_opportunity(self, opportunity_id: int) -> bool:
        async with self._lock:
            data = self._read_data()
            item = data["opportunities"].get(str(opportunity_id))
            if item is None:
                return False
            item["is_active"] = False
            self._write_data(data)
            return True

    # Correlations

    async def get_latest_correlations(self) -> list[CorrelationRecord]:
        data = self._read_data()
        records = [CorrelationRecord.from_dict(item) for item in data["correlations"].values()]
        records.sort(key=lambda r: r.id or 0)
        return records

    async def create_correlation(self, record: CorrelationRecord) -> CorrelationRecord:
        async with self._lock:
            data = self._read_data()
            item = record.to_dict()
            item["id"] = self._next_id(data, "correlation")
            item["calculated_at"] = datetime.now().isoformat()
            data["correlations"][str(item["id"])] = item
            self._write_data(data)
            return CorrelationRecord.from_dict(item)
