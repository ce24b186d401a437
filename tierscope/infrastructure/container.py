"""
Dependency injection container for the application.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from tierscope.adapters.coingecko.market_data_adapter import CoinGeckoMarketDataAdapter
from tierscope.adapters.dynamodb.repository import DynamoDBStorageAdapter
from tierscope.adapters.llm.gemini_adapter import GeminiAdapter
from tierscope.adapters.notifications.slack_notifier import SlackNotifier
from tierscope.adapters.storage.json_storage_adapter import JSONStorageAdapter
from tierscope.adapters.storage.memory_storage_adapter import InMemoryStorageAdapter
from tierscope.application.agents.trading_expert import TradingExpertAgent
from tierscope.application.services.correlation import CorrelationService
from tierscope.application.services.market_stats import MarketStatsService
from tierscope.application.services.opportunity_detector import OpportunityDetector
from tierscope.application.services.opportunity_engine import OpportunityEngine
from tierscope.application.use_cases.market_refresh import MarketRefreshUseCase
from tierscope.domain.ports.llm_port import LLMPort
from tierscope.domain.ports.market_data_port import MarketDataPort
from tierscope.domain.ports.storage_port import MarketStoragePort
from tierscope.infrastructure.config import Settings


@dataclass
class Container:
    """
    Dependency injection container.

    Provides configured instances of all application components.
    """

    settings: Settings

    # Adapters
    market_data_adapter: MarketDataPort
    storage_adapter: MarketStoragePort  # memory, JSON or DynamoDB
    llm_adapter: Optional[LLMPort]
    notifier: Optional[SlackNotifier]

    # Services
    engine: OpportunityEngine
    stats_service: MarketStatsService
    correlation_service: CorrelationService

    # Agents
    trading_expert: TradingExpertAgent

    # Use cases
    market_refresh: MarketRefreshUseCase

    _initialized: bool = False


_container: Optional[Container] = None


async def create_storage_adapter(settings: Settings) -> MarketStoragePort:
    """Build the storage adapter selected by settings.storage_type."""
    storage_type = settings.storage_type.lower()
    if storage_type == "json":
        return JSONStorageAdapter(settings.json_storage_path)
    if storage_type == "dynamodb":
        adapter = DynamoDBStorageAdapter(settings)
        await adapter.initialize_tables()
        return adapter
    return InMemoryStorageAdapter()


async def create_container(settings: Optional[Settings] = None) -> Container:
    """
    Create and configure the dependency container.

    Args:
        settings: Optional settings override

    Returns:
        Configured Container instance.
    """
    global _container

    if settings is None:
        from tierscope.infrastructure.config import get_settings
        settings = get_settings()

    market_data_adapter = CoinGeckoMarketDataAdapter(settings)
    storage_adapter = await create_storage_adapter(settings)

    # Assistant runs rule-based only without a Gemini key
    llm_adapter: Optional[LLMPort] = None
    if settings.gemini_api_key:
        llm_adapter = GeminiAdapter(settings)

    notifier: Optional[SlackNotifier] = None
    if settings.slack_webhook_url:
        notifier = SlackNotifier(settings.slack_webhook_url)

    engine = OpportunityEngine(
        detector=OpportunityDetector(ttl=timedelta(hours=settings.opportunity_ttl_hours)),
    )
    stats_service = MarketStatsService()
    correlation_service = CorrelationService()

    trading_expert = TradingExpertAgent(llm=llm_adapter)

    market_refresh = MarketRefreshUseCase(
        market_data=market_data_adapter,
        storage=storage_adapter,
        engine=engine,
        settings=settings,
        correlation_service=correlation_service,
        notifier=notifier,
    )

    _container = Container(
        settings=settings,
        market_data_adapter=market_data_adapter,
        storage_adapter=storage_adapter,
        llm_adapter=llm_adapter,
        notifier=notifier,
        engine=engine,
        stats_service=stats_service,
        correlation_service=correlation_service,
        trading_expert=trading_expert,
        market_refresh=market_refresh,
        _initialized=True,
    )

    return _container


def get_container() -> Container:
    """
    Get the current container instance.

    Raises:
        RuntimeError: If container not initialized.
    """
    if _container is None:
        raise RuntimeError("Container not initialized. Call create_container() first.")
    return _container


async def cleanup_container() -> None:
    """Clean up container resources."""
    global _container

    if _container is not None:
        await _container.market_data_adapter.close()
        if _container.notifier:
            await _container.notifier.close()
        _container = None
