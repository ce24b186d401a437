"""
Infrastructure layer - Configuration and logging.
"""

from tierscope.infrastructure.config import Settings, get_settings
from tierscope.infrastructure.logging import get_logger, setup_logging

__all__ = ["Settings", "get_settings", "get_logger", "setup_logging"]
