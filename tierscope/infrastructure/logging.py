"""
structlog setup shared by the CLI and the Lambda handler.
"""

import logging
import sys
from contextlib import AbstractContextManager
from typing import Any

import structlog

# Client libraries that log every request at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "botocore", "urllib3", "google_genai")


def _service_tagger(service: str):
    def add_service(logger: Any, method_name: str, event_dict: dict) -> dict:
        event_dict.setdefault("service", service)
        return event_dict

    return add_service


def setup_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    service: str = "tierscope",
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        json_format: JSON lines for Lambda/CloudWatch, coloured console otherwise
        service: Value of the `service` key on every event
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _service_tagger(service),
    ]
    if json_format:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=True, exception_formatter=structlog.dev.rich_traceback)
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def log_context(**values: Any) -> AbstractContextManager:
    """Bind `values` onto every event logged inside the `with` block."""
    return structlog.contextvars.bound_contextvars(**values)


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)
