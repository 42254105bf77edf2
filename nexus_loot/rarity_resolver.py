from random import Random
from typing import Any, Callable

import structlog

from nexus_loot.errors import NoCandidatesError
from nexus_loot.rarity import TIERS_DESCENDING, RarityDistribution, RarityTier

logger = structlog.get_logger(__name__)


def resolve(
    distribution: RarityDistribution,
    min_bound: RarityTier,
    max_bound: RarityTier,
    rng: Random,
) -> RarityTier:
    """
    Roll a rarity tier inside [min_bound, max_bound].

    Bands are checked highest tier first. A band that wins the roll but
    sits above `max_bound` hands the roll to the next lower band; a tier
    below `min_bound` is lifted to the floor. Never fails.
    """
    roll = rng.random() * distribution.total
    cumulative = 0.0

    for tier in TIERS_DESCENDING:
        if tier.is_lowest:
            break
        cumulative += distribution.weight_for(tier)
        if roll < cumulative and tier <= max_bound:
            return max(tier, min_bound)

    return max(RarityTier.common, min_bound)


def step_down_until_available(
    tier: RarityTier,
    has_candidates: Callable[[RarityTier], bool],
    **context: Any,
) -> RarityTier:
    """
    Walk `tier` down until `has_candidates` accepts it.

    Each step down is a degraded result and gets logged for balance
    review. An empty common pool is a configuration gap.
    """
    current = tier
    while not has_candidates(current):
        if current.is_lowest:
            raise NoCandidatesError(
                f"No candidates at any rarity from {tier.name} down to common",
                [{"path": _context_path(context), "message": f"empty pool from {tier.name} down"}],
            )
        current = current.step_down()

    if current != tier:
        logger.warning(
            "rarity_degraded",
            requested=tier.name,
            resolved=current.name,
            **context,
        )
    return current


def _context_path(context) -> str:
    return "$." + ".".join(f"{k}={v}" for k, v in context.items()) if context else "$"
