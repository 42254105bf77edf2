from collections import Counter
from random import Random
from typing import Any, Collection, Dict, List, Optional, Set

import structlog

from nexus_loot.conditions import is_satisfied
from nexus_loot.enums import DropCondition, ItemType, Manufacturer
from nexus_loot.import_rules import (
    DIFFICULTY_CHANCE_BONUS,
    DIFFICULTY_DROP_STEP,
    DIFFICULTY_EXCLUSIVE_THRESHOLD,
    GENERATED_ID_HEX_DIGITS,
    LEVEL_CAP,
)
from nexus_loot.models.loot_models import LootDrop, LootTable, LootTableEntry
from nexus_loot.part_engine import PartPools, compose_item
from nexus_loot.rarity import RarityTier
from nexus_loot.rarity_resolver import resolve
from nexus_loot.sampler import weighted_pick, weighted_pick_by

logger = structlog.get_logger(__name__)


def effective_entries(
    table: LootTable,
    difficulty_tier: int,
    parent: Optional[LootTable] = None,
) -> List[LootTableEntry]:
    """Own entries, then the parent's (one level), then difficulty-exclusive ones."""
    entries = list(table.entries)
    if parent is not None:
        entries.extend(parent.entries)
    if difficulty_tier >= DIFFICULTY_EXCLUSIVE_THRESHOLD:
        entries.extend(table.difficulty_exclusive_entries)
    return entries


def roll_drop_count(table: LootTable, luck: float, difficulty_tier: int, rng: Random) -> int:
    count = rng.randint(table.min_drops, table.max_drops)

    if rng.random() < table.bonus_drop_chance * (1 + luck):
        count += 1

    # +1 roll every DIFFICULTY_DROP_STEP tiers
    count += difficulty_tier // DIFFICULTY_DROP_STEP
    return count


def effective_chance(entry: LootTableEntry, luck: float, difficulty_tier: int) -> float:
    if entry.guaranteed:
        return 1.0

    chance = entry.base_drop_chance * (1 + luck)
    if difficulty_tier > 0:
        chance *= 1 + difficulty_tier * DIFFICULTY_CHANCE_BONUS
    return min(max(chance, 0.0), 1.0)


def roll_manufacturer(entry: LootTableEntry, table: LootTable, rng: Random) -> Manufacturer:
    weights = entry.manufacturer_weights or table.global_manufacturer_weights
    if weights:
        return weighted_pick([(w.manufacturer, w.weight) for w in weights], rng)
    return rng.choice(list(Manufacturer))


def generate_item_id(item_type: ItemType, rarity: RarityTier, rng: Random) -> str:
    suffix = f"{rng.getrandbits(4 * GENERATED_ID_HEX_DIGITS):0{GENERATED_ID_HEX_DIGITS}x}"
    return f"{item_type.value}_{rarity.name}_{suffix}"


def create_drop(
    entry: LootTableEntry,
    table: LootTable,
    player_level: int,
    rng: Random,
    parts: Optional[PartPools] = None,
    rarity_boost: float = 1.0,
) -> LootDrop:
    distribution = (entry.custom_distribution() or table.rarity_distribution).boosted(rarity_boost)
    rarity = resolve(distribution, entry.min_rarity, entry.max_rarity, rng)

    manufacturer = None
    if entry.item_type.is_weapon:
        manufacturer = roll_manufacturer(entry, table, rng)

    quantity = rng.randint(entry.min_quantity, entry.max_quantity)
    item_level = min(max(player_level + rng.randint(-table.level_range, table.level_range), 1), LEVEL_CAP)

    part_ids = None
    if entry.item_type.is_weapon and parts is not None:
        composed = compose_item(
            parts,
            rng,
            distribution=distribution,
            min_rarity=rarity,
            max_rarity=rarity,
            preferred_manufacturers=(manufacturer,),
            player_level=player_level,
        )
        rarity = composed.effective_rarity
        manufacturer = composed.manufacturer
        part_ids = composed.part_ids()

    return LootDrop(
        item_type=entry.item_type,
        item_id=entry.specific_item_id or generate_item_id(entry.item_type, rarity, rng),
        display_name=entry.entry_name,
        rarity=rarity,
        manufacturer=manufacturer,
        quantity=quantity,
        item_level=item_level,
        parts=part_ids,
        source_table_id=table.table_id,
    )


def _quest_allows(entry: LootTableEntry, active_quests: Collection[str]) -> bool:
    return entry.required_quest_id is None or entry.required_quest_id in active_quests


def _eligible(entries: List[LootTableEntry], player_level: int, flags: DropCondition) -> List[LootTableEntry]:
    return [
        e
        for e in entries
        if is_satisfied(e.required_conditions, flags)
        and e.level_allows(player_level)
        and 1 <= e.max_quantity
        and e.min_quantity <= e.max_quantity
    ]


def _roll_slot(
    table: LootTable,
    candidates: List[LootTableEntry],
    dropped_ids: Set[str],
    player_level: int,
    luck: float,
    difficulty_tier: int,
    rng: Random,
    parts: Optional[PartPools],
    rarity_boost: float,
) -> Optional[LootDrop]:
    if not table.allow_duplicates:
        candidates = [e for e in candidates if e.specific_item_id not in dropped_ids]

    while candidates:
        entry = weighted_pick_by(candidates, lambda e: e.weight, rng)

        if rng.random() > effective_chance(entry, luck, difficulty_tier):
            return None

        drop = create_drop(entry, table, player_level, rng, parts, rarity_boost)
        if table.allow_duplicates or drop.item_id not in dropped_ids:
            return drop

        # duplicate: retry this slot against what is left
        candidates = [e for e in candidates if e is not entry]

    return None


def roll_drops(
    table: LootTable,
    player_level: int,
    luck: float,
    difficulty_tier: int,
    active_flags: DropCondition,
    rng: Random,
    parent: Optional[LootTable] = None,
    parts: Optional[PartPools] = None,
    rarity_boost: float = 1.0,
    active_quests: Collection[str] = (),
) -> List[LootDrop]:
    """
    Roll every drop one table produces for one event.

    Entries gated on a quest are skipped unless that quest is in
    `active_quests`.

    Pure given its inputs: the same table, context and seeded `rng`
    always produce the same list.
    """
    if player_level < table.minimum_player_level:
        return []
    if difficulty_tier < table.minimum_difficulty:
        return []

    entries = effective_entries(table, difficulty_tier, parent)
    entries = [e for e in entries if _quest_allows(e, active_quests)]
    drop_count = roll_drop_count(table, luck, difficulty_tier, rng)
    eligible = _eligible(entries, player_level, active_flags)

    drops: List[LootDrop] = []
    dropped_ids: Set[str] = set()

    for _ in range(drop_count):
        if not eligible:
            break
        drop = _roll_slot(
            table, eligible, dropped_ids, player_level, luck, difficulty_tier, rng, parts, rarity_boost,
        )
        if drop is not None:
            drops.append(drop)
            dropped_ids.add(drop.item_id)

    if not drops and table.guaranteed_drop and entries:
        guaranteed = [e for e in entries if e.guaranteed]
        entry = rng.choice(guaranteed or entries)
        drops.append(create_drop(entry, table, player_level, rng, parts, rarity_boost))

    logger.debug(
        "table_rolled",
        table_id=table.table_id,
        drop_count=drop_count,
        dropped=len(drops),
        player_level=player_level,
        difficulty=difficulty_tier,
    )
    return drops


def table_statistics(table: LootTable) -> Dict[str, Any]:
    entries = table.all_entries()
    return {
        "table_id": table.table_id,
        "total_entries": len(entries),
        "entries_by_type": dict(Counter(e.item_type.value for e in entries)),
        "entries_by_max_rarity": dict(Counter(e.max_rarity.name for e in entries)),
        "total_weight": sum(e.weight for e in table.entries),
        "guaranteed_entries": sum(1 for e in table.entries if e.guaranteed),
        "conditional_entries": sum(1 for e in table.entries if e.required_conditions != DropCondition.none),
    }
