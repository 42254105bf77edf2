from random import Random
from typing import List, Optional

import structlog

from nexus_loot.enums import SourceType
from nexus_loot.import_rules import DIFFICULTY_EXCLUSIVE_THRESHOLD
from nexus_loot.index import LootIndex
from nexus_loot.models.loot_models import DedicatedDropSource, LootDrop, UniqueCompositeDefinition
from nexus_loot.part_engine import compose_item
from nexus_loot.sampler import weighted_pick_by
from nexus_loot.settings import settings

logger = structlog.get_logger(__name__)


def compose_unique(
    definition: UniqueCompositeDefinition,
    index: LootIndex,
    rng: Random,
    player_level: Optional[int] = None,
    item_level: int = 1,
) -> LootDrop:
    """
    Build a named weapon: fixed parts verbatim, the rest randomized inside
    the definition's part rarity bounds. Never comes out below the
    definition's own rarity.
    """
    fixed = {category: index.get_part(part_id) for category, part_id in definition.fixed_parts.items()}

    composed = compose_item(
        index,
        rng,
        fixed_overrides=fixed,
        min_rarity=definition.min_random_part_rarity,
        max_rarity=definition.max_random_part_rarity,
        preferred_manufacturers=definition.preferred_manufacturers,
        player_level=player_level,
    )

    return LootDrop(
        item_type=definition.item_type,
        item_id=definition.unique_id,
        display_name=definition.display_name,
        rarity=max(definition.rarity, composed.effective_rarity),
        manufacturer=composed.manufacturer,
        quantity=1,
        item_level=item_level,
        parts=composed.part_ids(),
        unique_id=definition.unique_id,
    )


def unique_can_drop(definition: UniqueCompositeDefinition, player_level: int, difficulty_tier: int) -> bool:
    if player_level < definition.minimum_level:
        return False
    if difficulty_tier < definition.minimum_difficulty:
        return False
    if definition.difficulty_exclusive and difficulty_tier < DIFFICULTY_EXCLUSIVE_THRESHOLD:
        return False
    return True


def dedicated_chance(source: DedicatedDropSource, difficulty_tier: int) -> float:
    return min(source.drop_chance + source.difficulty_bonus_per_level * difficulty_tier, 1.0)


def _matching_source(
    definition: UniqueCompositeDefinition,
    source_type: SourceType,
    source_id: Optional[str],
) -> Optional[DedicatedDropSource]:
    for source in definition.dedicated_sources:
        if source.source_type != source_type:
            continue
        if source.source_id and source.source_id != source_id:
            continue
        return source
    return None


def roll_dedicated_uniques(
    index: LootIndex,
    source_type: SourceType,
    source_id: Optional[str],
    player_level: int,
    difficulty_tier: int,
    rng: Random,
) -> List[LootDrop]:
    """At most one chance per unique whose dedicated sources include this source."""
    drops = []
    for definition in index.uniques:
        source = _matching_source(definition, source_type, source_id)
        if source is None or not unique_can_drop(definition, player_level, difficulty_tier):
            continue

        if rng.random() < dedicated_chance(source, difficulty_tier):
            drop = compose_unique(definition, index, rng, player_level=player_level, item_level=player_level)
            drops.append(drop)
            logger.info(
                "unique_dropped",
                unique_id=definition.unique_id,
                source_type=source_type.value,
                source_id=source_id,
                rarity=drop.rarity.name,
            )
    return drops


def roll_world_unique(
    index: LootIndex,
    player_level: int,
    luck: float,
    difficulty_tier: int,
    rng: Random,
    chance: Optional[float] = None,
) -> Optional[LootDrop]:
    """
    One chance at a unique from the open world pool.

    Only uniques flagged for world drops take part; which one drops is
    weighted by their base drop weight.
    """
    chance = settings.world_unique_chance if chance is None else chance
    pool = [
        u for u in index.uniques
        if u.world_drop_enabled and u.base_drop_weight > 0 and unique_can_drop(u, player_level, difficulty_tier)
    ]
    if not pool or rng.random() >= min(max(chance * (1 + luck), 0.0), 1.0):
        return None

    definition = weighted_pick_by(pool, lambda u: u.base_drop_weight, rng)
    drop = compose_unique(definition, index, rng, player_level=player_level, item_level=player_level)
    logger.info("unique_dropped", unique_id=definition.unique_id, source_type="world", rarity=drop.rarity.name)
    return drop
