"""
Tier Aggregator - Groups tokens by tier and computes mean 24h change.
"""

from decimal import Decimal
from typing import Iterable

from tierscope.domain.entities.token import Tier, TierStats, TokenSnapshot


def mean_change(tokens: Iterable[TokenSnapshot]) -> Decimal:
    """
    Unweighted mean of price_change_percentage_24h.

    Returns 0 for an empty collection.
    """
    total = Decimal("0")
    count = 0
    for token in tokens:
        total += token.price_change_percentage_24h
        count += 1
    if count == 0:
        return Decimal("0")
    return total / count


def aggregate_by_tier(tokens: Iterable[TokenSnapshot]) -> dict[Tier, TierStats]:
    """
    Partition tokens by their existing tier tag.

    The tier field is taken as-is, never re-derived from market cap, so a
    token tagged at a slightly different market-cap reading stays put.

    Args:
        tokens: Token universe

    Returns:
        TierStats for all six tiers, largest first. Tokens keep input order
        within their tier; empty tiers have mean 0.
    """
    buckets: dict[Tier, list[TokenSnapshot]] = {tier: [] for tier in Tier.ordered()}
    for token in tokens:
        buckets[Tier(token.tier)].append(token)

    return {
        tier: TierStats(tier=tier, members=members, mean_change_24h=mean_change(members))
        for tier, members in buckets.items()
    }
