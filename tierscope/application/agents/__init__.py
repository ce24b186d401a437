"""
Agent implementations.
"""

from tierscope.application.agents.trading_expert import TradingExpertAgent

__all__ = ["TradingExpertAgent"]
