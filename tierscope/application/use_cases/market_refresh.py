"""
Market Refresh Use Case - Ingests a market snapshot and refreshes opportunities.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from tierscope.adapters.notifications.slack_notifier import SlackNotifier
from tierscope.application.services.correlation import CorrelationService
from tierscope.application.services.opportunity_engine import OpportunityEngine
from tierscope.domain.entities.opportunity import TradingOpportunity
from tierscope.domain.entities.token import Tier, TokenSnapshot
from tierscope.domain.ports.market_data_port import MarketDataPort
from tierscope.domain.ports.storage_port import MarketStoragePort
from tierscope.infrastructure.config import Settings
from tierscope.infrastructure.logging import get_logger, log_context

logger = get_logger(__name__)


class RefreshMode(str, Enum):
    """Market refresh execution modes."""

    FULL = "full"  # Ingest then analyze
    INGEST_ONLY = "ingest_only"  # Only pull and store the snapshot
    ANALYZE_ONLY = "analyze_only"  # Only analyze stored tokens


@dataclass
class RefreshResult:
    """Result of a market refresh."""

    mode: RefreshMode
    start_time: datetime
    end_time: datetime
    success: bool

    # Ingestion results
    tokens_ingested: int = 0
    ingest_duration_seconds: float = 0.0

    # Analysis results
    opportunities_created: int = 0
    opportunities_deactivated: int = 0
    correlations_created: int = 0
    tier_volatility: dict[str, float] = field(default_factory=dict)
    alerts_sent: bool = False
    analysis_duration_seconds: float = 0.0

    errors: list[str] = field(default_factory=list)

    @property
    def total_duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "mode": self.mode.value,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "total_duration_seconds": self.total_duration_seconds,
            "success": self.success,
            "tokens_ingested": self.tokens_ingested,
            "ingest_duration_seconds": self.ingest_duration_seconds,
            "opportunities_created": self.opportunities_created,
            "opportunities_deactivated": self.opportunities_deactivated,
            "correlations_created": self.correlations_created,
            "tier_volatility": self.tier_volatility,
            "alerts_sent": self.alerts_sent,
            "analysis_duration_seconds": self.analysis_duration_seconds,
            "errors": self.errors,
        }


class MarketRefreshUseCase:
    """
    Orchestrates one refresh of the market view.

    The refresh consists of:
    1. Ingestion: fetch the provider snapshot and upsert every token
    2. Analysis: run the engine over stored tokens and persist opportunities
    3. Alerts: notify high-confidence opportunities (when configured)
    4. Correlations: store tier-to-tier correlations (when enabled)
    """

    def __init__(
        self,
        market_data: MarketDataPort,
        storage: MarketStoragePort,
        engine: OpportunityEngine,
        settings: Settings,
        correlation_service: Optional[CorrelationService] = None,
        notifier: Optional[SlackNotifier] = None,
    ):
        """
        Initialize the refresh use case.

        Args:
            market_data: Provider adapter for snapshots and price history
            storage: Persistence adapter
            engine: Opportunity analysis engine
            settings: Application settings
            correlation_service: Tier correlation builder
            notifier: Optional Slack notifier for alerts
        """
        self.market_data = market_data
        self.storage = storage
        self.engine = engine
        self.settings = settings
        self.correlations = correlation_service or CorrelationService()
        self.notifier = notifier

    async def run(self, mode: RefreshMode = RefreshMode.FULL) -> RefreshResult:
        """
        Run the market refresh.

        Args:
            mode: Execution mode (full, ingest_only, analyze_only)

        Returns:
            RefreshResult with details of the run.
        """
        start_time = datetime.now()
        result = RefreshResult(
            mode=mode,
            start_time=start_time,
            end_time=start_time,
            success=True,
        )

        with log_context(refresh_mode=mode.value, run_started=start_time.isoformat()):
            logger.info("Starting market refresh")
            try:
                if mode in (RefreshMode.FULL, RefreshMode.INGEST_ONLY):
                    await self._run_ingest_phase(result)

                if mode in (RefreshMode.FULL, RefreshMode.ANALYZE_ONLY):
                    await self._run_analysis_phase(result)

            except Exception as e:
                logger.error("Market refresh failed", error=str(e))
                result.success = False

        result.end_time = datetime.now()

        logger.info(
            "Market refresh complete",
            mode=mode.value,
            success=result.success,
            duration=result.total_duration_seconds,
            ingested=result.tokens_ingested,
            created=result.opportunities_created,
            deactivated=result.opportunities_deactivated,
        )

        return result

    async def _run_ingest_phase(self, result: RefreshResult) -> None:
        """Fetch the snapshot and upsert every token."""
        phase_start = datetime.now()

        try:
            tokens = await self.market_data.get_market_snapshot()
            for token in tokens:
                await self.storage.upsert_token(token)
            result.tokens_ingested = len(tokens)

            logger.info("Ingest phase complete", tokens=len(tokens))

        except Exception as e:
            logger.error("Ingest phase failed", error=str(e))
            result.errors.append(f"Ingest phase: {e}")
            raise

        finally:
            result.ingest_duration_seconds = (datetime.now() - phase_start).total_seconds()

    async def _run_analysis_phase(self, result: RefreshResult) -> None:
        """Analyze stored tokens and persist the resulting opportunities."""
        phase_start = datetime.now()

        try:
            tokens = await self.storage.get_all_tokens()
            opportunities = self.engine.analyze(tokens, now=datetime.now())

            if self.settings.dedupe_opportunities:
                result.opportunities_deactivated = await self._deactivate_superseded(opportunities)

            stored = []
            for opportunity in opportunities:
                stored.append(await self.storage.create_opportunity(opportunity))
            result.opportunities_created = len(stored)

            if self.notifier and stored:
                result.alerts_sent = await self.notifier.send_opportunity_alerts(
                    stored,
                    min_confidence=self.settings.alert_min_confidence,
                )

            if self.settings.enable_correlations and tokens:
                await self._refresh_correlations(tokens, result)

            logger.info(
                "Analysis phase complete",
                tokens=len(tokens),
                opportunities=result.opportunities_created,
            )

        except Exception as e:
            logger.error("Analysis phase failed", error=str(e))
            result.errors.append(f"Analysis phase: {e}")
            raise

        finally:
            result.analysis_duration_seconds = (datetime.now() - phase_start).total_seconds()

    async def _deactivate_superseded(self, opportunities: list[TradingOpportunity]) -> int:
        """Deactivate live opportunities with the same token and direction as a new one."""
        keys = {(o.cryptocurrency_id, o.opportunity_type) for o in opportunities}
        deactivated = 0

        for existing in await self.storage.get_active_opportunities():
            if (existing.cryptocurrency_id, existing.opportunity_type) not in keys:
                continue
            if existing.id is not None and await self.storage.deactivate_opportunity(existing.id):
                deactivated += 1

        if deactivated:
            logger.info("Deactivated superseded opportunities", count=deactivated)
        return deactivated

    async def _refresh_correlations(self, tokens: list[TokenSnapshot], result: RefreshResult) -> None:
        """Store tier correlations and report realized volatility from each tier's largest token."""
        leaders: dict[Tier, TokenSnapshot] = {}
        for token in tokens:
            leader = leaders.get(token.tier)
            if leader is None or token.market_cap > leader.market_cap:
                leaders[token.tier] = token

        series_by_tier: dict[Tier, list[float]] = {}
        for tier, token in leaders.items():
            coin_id = token.metadata.get("coingecko_id")
            if not coin_id:
                continue
            try:
                history = await self.market_data.get_price_history(
                    coin_id,
                    days=self.settings.correlation_history_days,
                )
            except Exception as e:
                logger.warning("Price history unavailable", tier=tier.value, coin=coin_id, error=str(e))
                continue
            series_by_tier[tier] = [price for _, price in history]

        records = self.correlations.compute_tier_correlations(
            series_by_tier,
            timeframe=self.settings.correlation_timeframe,
        )
        for record in records:
            await self.storage.create_correlation(record)

        result.correlations_created = len(records)
        result.tier_volatility = self.correlations.tier_volatility(series_by_tier)
        logger.info("Tier volatility", volatility=result.tier_volatility)
