"""
AWS Lambda handler for scheduled market refreshes.

Triggered by EventBridge on a schedule (e.g., every 5 minutes).

Environment Variables:
    - All variables from .env.example
    - REFRESH_MODE: "full", "ingest-only", "analyze-only" (default: full)

Lambda Event Structure:
    {
        "mode": "full" | "ingest-only" | "analyze-only",
        "max_tokens": 500
    }
"""

import asyncio
import os
from typing import Any

from tierscope.application.use_cases.market_refresh import RefreshMode, RefreshResult
from tierscope.infrastructure.config import Settings
from tierscope.infrastructure.container import cleanup_container, create_container
from tierscope.infrastructure.logging import get_logger, setup_logging

setup_logging(
    log_level=os.environ.get("LOG_LEVEL", "INFO"),
    json_format=True,
)

logger = get_logger(__name__)


def get_refresh_mode_from_string(mode_str: str) -> RefreshMode:
    """Convert mode string to RefreshMode enum."""
    mode_map = {
        "full": RefreshMode.FULL,
        "refresh": RefreshMode.FULL,
        "ingest-only": RefreshMode.INGEST_ONLY,
        "ingest_only": RefreshMode.INGEST_ONLY,
        "analyze-only": RefreshMode.ANALYZE_ONLY,
        "analyze_only": RefreshMode.ANALYZE_ONLY,
    }
    return mode_map.get(mode_str.lower(), RefreshMode.FULL)


async def async_handler(event: dict[str, Any]) -> dict[str, Any]:
    """
    Async Lambda handler implementation.

    Args:
        event: Lambda event data

    Returns:
        Response with refresh results.
    """
    logger.info("Lambda handler invoked", event=event)

    mode = get_refresh_mode_from_string(event.get("mode", os.environ.get("REFRESH_MODE", "full")))
    max_tokens = event.get("max_tokens")

    try:
        settings = Settings()
        if max_tokens:
            settings = settings.model_copy(update={"max_tokens": int(max_tokens)})

        missing = settings.validate_required()
        if missing:
            logger.error("Missing required settings", missing=missing)
            return {
                "statusCode": 500,
                "body": {
                    "success": False,
                    "error": f"Missing required settings: {', '.join(missing)}",
                },
            }

        container = await create_container(settings)
        result: RefreshResult = await container.market_refresh.run(mode=mode)

        return {
            "statusCode": 200 if result.success else 500,
            "body": result.to_dict(),
        }

    except Exception as e:
        logger.exception("Lambda handler failed", error=str(e))
        return {
            "statusCode": 500,
            "body": {
                "success": False,
                "error": str(e),
            },
        }

    finally:
        await cleanup_container()


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    AWS Lambda handler entry point.

    Args:
        event: Lambda event data
        context: Lambda context object

    Returns:
        Response dictionary with statusCode and body.
    """
    if context:
        logger.info(
            "Lambda context",
            function_name=getattr(context, "function_name", "unknown"),
            remaining_time=getattr(context, "get_remaining_time_in_millis", lambda: 0)(),
        )

    return asyncio.run(async_handler(event or {}))
