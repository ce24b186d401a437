"""
Main entry point for local execution.

Usage:
    python -m tierscope.main [OPTIONS]

Options:
    --mode          Execution mode: refresh, ingest-only, analyze-only, stats, ask (default: refresh)
    --query         Question for the trading assistant (ask mode)
    --max-tokens    Number of tokens to pull from CoinGecko (default: from config)
    --log-level     Logging level: DEBUG, INFO, WARNING, ERROR (default: INFO)
    --json-logs     Output logs as JSON

Examples:
    # Pull the market and refresh opportunities
    python -m tierscope.main

    # Re-run analysis over stored tokens only
    python -m tierscope.main --mode analyze-only

    # Show market statistics and live opportunities
    python -m tierscope.main --mode stats

    # Ask the trading assistant
    python -m tierscope.main --mode ask --query "What leverage makes sense today?"
"""

import argparse
import asyncio
import sys
from typing import NoReturn

from tierscope.application.use_cases.market_refresh import RefreshMode
from tierscope.domain.entities.assistant import AssistantContext
from tierscope.infrastructure.config import get_settings
from tierscope.infrastructure.container import Container, cleanup_container, create_container
from tierscope.infrastructure.logging import get_logger, setup_logging

REFRESH_MODES = {
    "refresh": RefreshMode.FULL,
    "ingest-only": RefreshMode.INGEST_ONLY,
    "analyze-only": RefreshMode.ANALYZE_ONLY,
}


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="TierScope - Crypto market tiers and leveraged trading opportunities",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--mode",
        choices=["refresh", "ingest-only", "analyze-only", "stats", "ask"],
        default="refresh",
        help="Execution mode (default: refresh)",
    )

    parser.add_argument(
        "--query",
        help="Question for the trading assistant (required in ask mode)",
    )

    parser.add_argument(
        "--max-tokens",
        type=int,
        help="Number of tokens to pull from CoinGecko (default: from config)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Output logs as JSON",
    )

    return parser.parse_args(argv)


async def print_stats(container: Container) -> int:
    """Print market statistics and live opportunities."""
    tokens = await container.storage_adapter.get_all_tokens()
    active = await container.storage_adapter.get_active_opportunities()
    stats = container.stats_service.build(tokens, active)

    print("\n" + "=" * 60)
    print("MARKET STATISTICS")
    print("=" * 60)
    print(f"Tokens: {len(tokens)}")
    print(f"Total Market Cap: ${stats.total_market_cap / 1e12:.2f}T")
    print(f"BTC Dominance: {stats.btc_dominance:.2f}%")
    print(f"Market Trend: {stats.market_trend}")
    print(f"Volatility Index: {stats.volatility_index:.1f}/100")

    print("\nTiers:")
    for tier, summary in container.engine.tier_summary(tokens).items():
        if summary["count"]:
            print(f"  {tier}: {summary['count']} tokens, mean {summary['mean_change_24h']:+.2f}%")

    print(f"\nActive Opportunities ({len(active)}):")
    for opportunity in sorted(active, key=lambda o: o.confidence, reverse=True)[:10]:
        print(f"  - {opportunity.summary}")

    print("=" * 60)
    return 0


async def ask(container: Container, query: str) -> int:
    """Answer a question with the trading assistant."""
    tokens = await container.storage_adapter.get_all_tokens()
    active = await container.storage_adapter.get_active_opportunities()
    context = AssistantContext(
        tokens=tokens,
        opportunities=active,
        market_stats=container.stats_service.build(tokens, active),
    )

    reply = await container.trading_expert.answer(query, context)

    print("\n" + reply.response)
    print("\n" + "-" * 60)
    print(
        f"Sentiment: {reply.sentiment} | Risk: {reply.risk_level} | "
        f"Confidence: {reply.confidence:.0f}%"
    )
    for recommendation in reply.recommendations:
        print(f"  - {recommendation}")
    return 0


async def run_async(args: argparse.Namespace) -> int:
    """Run the selected mode asynchronously."""
    logger = get_logger(__name__)

    settings = get_settings()

    if args.max_tokens:
        settings = settings.model_copy(update={"max_tokens": args.max_tokens})

    missing = settings.validate_required()
    if missing:
        logger.error("Missing required settings", missing=missing)
        print(f"Error: Invalid or missing settings: {', '.join(missing)}")
        print("Please check your .env file or environment variables.")
        return 1

    if args.mode == "ask" and not args.query:
        print("Error: --query is required in ask mode")
        return 1

    try:
        logger.info("Initializing application...")
        container = await create_container(settings)

        if args.mode == "stats":
            return await print_stats(container)
        if args.mode == "ask":
            return await ask(container, args.query)

        mode = REFRESH_MODES[args.mode]
        result = await container.market_refresh.run(mode=mode)

        print("\n" + "=" * 60)
        print("MARKET REFRESH COMPLETE")
        print("=" * 60)
        print(f"Mode: {result.mode.value}")
        print(f"Duration: {result.total_duration_seconds:.2f}s")
        print(f"Success: {'yes' if result.success else 'no'}")

        if mode != RefreshMode.ANALYZE_ONLY:
            print(f"\nTokens Ingested: {result.tokens_ingested}")
        if mode != RefreshMode.INGEST_ONLY:
            print(f"Opportunities Created: {result.opportunities_created}")
            print(f"Opportunities Deactivated: {result.opportunities_deactivated}")
            if settings.enable_correlations:
                print(f"Correlations Stored: {result.correlations_created}")

        if result.errors:
            print("\nErrors:")
            for error in result.errors:
                print(f"  - {error}")

        print("=" * 60)

        return 0 if result.success else 1

    except Exception as e:
        logger.exception("Run failed", error=str(e))
        print(f"\nError: {e}")
        return 1

    finally:
        await cleanup_container()


def main() -> NoReturn:
    """Main entry point."""
    args = parse_args()

    setup_logging(
        log_level=args.log_level,
        json_format=args.json_logs,
    )

    exit_code = asyncio.run(run_async(args))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
