"""
Domain entities - Core business objects.
"""

from tierscope.domain.entities.token import (
    DataIntegrityError,
    Tier,
    TierStats,
    TokenSnapshot,
    determine_tier,
)
from tierscope.domain.entities.opportunity import (
    OpportunityAnalysis,
    OpportunityType,
    RiskComponents,
    RiskLevel,
    TradingOpportunity,
)
from tierscope.domain.entities.market_stats import CorrelationRecord, MarketStats
from tierscope.domain.entities.assistant import AssistantContext, AssistantReply

__all__ = [
    "DataIntegrityError",
    "Tier",
    "TierStats",
    "TokenSnapshot",
    "determine_tier",
    "OpportunityAnalysis",
    "OpportunityType",
    "RiskComponents",
    "RiskLevel",
    "TradingOpportunity",
    "CorrelationRecord",
    "MarketStats",
    "AssistantContext",
    "AssistantReply",
]
