from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from random import Random
from typing import Any, Dict, List, Optional, Sequence

import structlog

from nexus_loot.conditions import conditions_for_context
from nexus_loot.drop_engine import roll_drops, table_statistics
from nexus_loot.enums import ChestTier, DropCondition, GameZone, Manufacturer, PartCategory
from nexus_loot.errors import UnknownReferenceError
from nexus_loot.index import IndexHolder, LootIndex
from nexus_loot.models.loot_models import LootDrop, LootTable, RollContext
from nexus_loot.models.part_models import ComposedItem
from nexus_loot.part_engine import compose_item
from nexus_loot.rarity import RarityTier
from nexus_loot.rng import derive_rng, get_rng
from nexus_loot.unique_drops import compose_unique, roll_dedicated_uniques, roll_world_unique

logger = structlog.get_logger(__name__)


class LootService:
    """Entry point the collaborators call: resolves tables and applies dataset-wide modifiers."""

    def __init__(self, holder: IndexHolder):
        self.holder = holder

    @property
    def index(self) -> LootIndex:
        return self.holder.index

    def _roll_table(
        self,
        index: LootIndex,
        table: LootTable,
        player_level: int,
        luck: float,
        difficulty_tier: int,
        conditions: DropCondition,
        rng: Random,
        active_quests: Sequence[str] = (),
    ) -> List[LootDrop]:
        dataset = index.dataset
        return roll_drops(
            table,
            player_level,
            luck + dataset.global_luck_modifier,
            difficulty_tier,
            conditions,
            rng,
            parent=index.parent_of(table),
            parts=index if dataset.parts else None,
            rarity_boost=dataset.global_rarity_boost,
            active_quests=active_quests,
        )

    # ---- rolls ----

    def roll_source(self, context: RollContext, rng: Random) -> List[LootDrop]:
        """Every matching table for the source, plus dedicated unique drops."""
        index = self.index
        flags = conditions_for_context(context.conditions, context.difficulty_tier)

        drops: List[LootDrop] = []
        for table in index.matching_tables(context.source_type, context.source_id, context.zone):
            drops.extend(
                self._roll_table(
                    index, table, context.player_level, context.luck, context.difficulty_tier, flags, rng,
                    context.active_quest_ids,
                )
            )

        if index.dataset.parts:
            drops.extend(
                roll_dedicated_uniques(
                    index,
                    context.source_type,
                    context.source_id,
                    context.player_level,
                    context.difficulty_tier,
                    rng,
                )
            )

        logger.info(
            "source_rolled",
            source_type=context.source_type.value,
            source_id=context.source_id,
            zone=context.zone.value if context.zone else None,
            drops=len(drops),
        )
        return drops

    def roll_table(
        self,
        table_id: str,
        player_level: int,
        luck: float,
        difficulty_tier: int,
        conditions: DropCondition,
        rng: Random,
        active_quests: Sequence[str] = (),
    ) -> List[LootDrop]:
        index = self.index
        table = index.get_table(table_id)
        flags = conditions_for_context(conditions, difficulty_tier)
        return self._roll_table(index, table, player_level, luck, difficulty_tier, flags, rng, active_quests)

    def roll_chest(
        self,
        tier: ChestTier,
        player_level: int,
        luck: float,
        difficulty_tier: int,
        rng: Random,
        active_quests: Sequence[str] = (),
    ) -> List[LootDrop]:
        index = self.index
        table = index.chest_table(tier)
        if table is None:
            return []
        return self._roll_table(
            index, table, player_level, luck, difficulty_tier, DropCondition.none, rng, active_quests,
        )

    def roll_world(
        self,
        zone: Optional[GameZone],
        player_level: int,
        luck: float,
        difficulty_tier: int,
        rng: Random,
        active_quests: Sequence[str] = (),
    ) -> List[LootDrop]:
        """The zone's world table, plus a small chance at a world-drop unique."""
        index = self.index
        drops: List[LootDrop] = []
        table = index.world_table(zone)
        if table is not None:
            drops.extend(
                self._roll_table(
                    index, table, player_level, luck, difficulty_tier, DropCondition.none, rng, active_quests,
                )
            )

        if index.dataset.parts:
            unique = roll_world_unique(index, player_level, luck, difficulty_tier, rng)
            if unique is not None:
                drops.append(unique)
        return drops

    def roll_boss(
        self,
        zone: GameZone,
        player_level: int,
        luck: float,
        difficulty_tier: int,
        conditions: DropCondition,
        rng: Random,
        active_quests: Sequence[str] = (),
    ) -> List[LootDrop]:
        """Roll the zone's configured boss as if it had just been killed."""
        table = self.index.boss_table(zone)
        if table is None:
            raise UnknownReferenceError(f"Zone '{zone.value}' has no boss table")

        context = RollContext(
            source_type=table.source_type,
            source_id=table.specific_source_id,
            player_level=player_level,
            luck=luck,
            difficulty_tier=difficulty_tier,
            conditions=conditions,
            zone=zone,
            active_quest_ids=list(active_quests),
        )
        return self.roll_source(context, rng)

    # ---- weapons ----

    def compose_weapon(
        self,
        rng: Random,
        fixed_part_ids: Optional[Dict[PartCategory, str]] = None,
        min_rarity: RarityTier = RarityTier.common,
        max_rarity: RarityTier = RarityTier.apocalypse,
        preferred_manufacturers: Sequence[Manufacturer] = (),
        player_level: Optional[int] = None,
    ) -> ComposedItem:
        index = self.index
        # slot/category mismatches are rejected by compose_item
        fixed = {category: index.get_part(part_id) for category, part_id in (fixed_part_ids or {}).items()}

        unbuildable = [m.name for m in preferred_manufacturers if not index.receivers_by_manufacturer(m)]
        if unbuildable:
            logger.warning("manufacturer_has_no_receivers", manufacturers=unbuildable)

        return compose_item(
            index,
            rng,
            fixed_overrides=fixed,
            min_rarity=min_rarity,
            max_rarity=max_rarity,
            preferred_manufacturers=preferred_manufacturers,
            player_level=player_level,
        )

    def compose_unique(self, unique_id: str, rng: Random, player_level: int = 1) -> LootDrop:
        index = self.index
        return compose_unique(index.get_unique(unique_id), index, rng, player_level=player_level, item_level=player_level)

    # ---- analysis ----

    def table_statistics(self, table_id: str) -> Dict[str, Any]:
        return table_statistics(self.index.get_table(table_id))

    def _simulate_batch(
        self,
        index: LootIndex,
        table: LootTable,
        rolls: int,
        player_level: int,
        luck: float,
        difficulty_tier: int,
        flags: DropCondition,
        rng: Random,
    ) -> Dict[str, Any]:
        rarity_counts: Counter = Counter()
        type_counts: Counter = Counter()
        manufacturer_counts: Counter = Counter()
        empty_rolls = 0
        total_drops = 0

        for _ in range(rolls):
            drops = self._roll_table(index, table, player_level, luck, difficulty_tier, flags, rng)
            if not drops:
                empty_rolls += 1
            total_drops += len(drops)
            for drop in drops:
                rarity_counts[drop.rarity.name] += 1
                type_counts[drop.item_type.value] += 1
                if drop.manufacturer is not None:
                    manufacturer_counts[drop.manufacturer.name] += 1

        return {
            "rarity": rarity_counts,
            "type": type_counts,
            "manufacturer": manufacturer_counts,
            "empty_rolls": empty_rolls,
            "total_drops": total_drops,
        }

    def simulate(
        self,
        table_id: str,
        simulations: int,
        player_level: int,
        luck: float = 0.0,
        difficulty_tier: int = 0,
        conditions: DropCondition = DropCondition.none,
        seed: Optional[int] = None,
        workers: int = 1,
    ) -> Dict[str, Any]:
        """
        Roll one table many times and summarise what came out.

        With several workers the rolls are split into batches, each on its
        own child generator drawn from the seeded one, so a given seed and
        worker count always reproduce the same totals.
        """
        index = self.index
        table = index.get_table(table_id)
        flags = conditions_for_context(conditions, difficulty_tier)
        rng = get_rng(seed)

        workers = max(1, min(workers, simulations))
        if workers == 1:
            batches = [
                self._simulate_batch(index, table, simulations, player_level, luck, difficulty_tier, flags, rng)
            ]
        else:
            batch_sizes = [simulations // workers + (1 if i < simulations % workers else 0) for i in range(workers)]
            batch_rngs = [derive_rng(rng) for _ in batch_sizes]
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [
                    executor.submit(
                        self._simulate_batch,
                        index, table, size, player_level, luck, difficulty_tier, flags, batch_rng,
                    )
                    for size, batch_rng in zip(batch_sizes, batch_rngs)
                ]
                batches = [f.result() for f in futures]

        rarity_counts: Counter = sum((b["rarity"] for b in batches), Counter())
        type_counts: Counter = sum((b["type"] for b in batches), Counter())
        manufacturer_counts: Counter = sum((b["manufacturer"] for b in batches), Counter())
        empty_rolls = sum(b["empty_rolls"] for b in batches)
        total_drops = sum(b["total_drops"] for b in batches)

        # enforce rarity order
        rarity_distribution = {
            tier.name: round(rarity_counts[tier.name] / total_drops * 100, 4)
            for tier in RarityTier
            if total_drops and tier.name in rarity_counts
        }

        warnings = []
        high_end = sum(rarity_counts[t.name] for t in RarityTier if t >= RarityTier.legendary)
        if total_drops and high_end / total_drops < 0.005:
            warnings.append("Legendary-or-better items drop less than 0.5% of the time.")
        if empty_rolls:
            warnings.append(f"{empty_rolls} of {simulations} rolls produced nothing.")

        logger.info(
            "simulation_finished",
            table_id=table_id,
            simulations=simulations,
            workers=workers,
            total_drops=total_drops,
        )
        return {
            "table_id": table_id,
            "simulations": simulations,
            "total_drops": total_drops,
            "average_drops": round(total_drops / simulations, 4),
            "empty_rolls": empty_rolls,
            "rarity_counts": {t.name: rarity_counts[t.name] for t in RarityTier if t.name in rarity_counts},
            "rarity_distribution": rarity_distribution,
            "type_counts": dict(type_counts.most_common()),
            "manufacturer_counts": dict(manufacturer_counts.most_common()),
            "warnings": warnings,
        }
