import threading
from collections import Counter, defaultdict
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Tuple

import structlog

from nexus_loot.enums import (
    MANUFACTURER_CATEGORY,
    ChestTier,
    GameZone,
    Manufacturer,
    PartCategory,
    SourceType,
)
from nexus_loot.errors import UnknownReferenceError
from nexus_loot.import_validator import ensure_valid
from nexus_loot.models.loot_models import LootDataset, LootTable, UniqueCompositeDefinition
from nexus_loot.models.part_models import PartDefinition
from nexus_loot.rarity import RarityTier

logger = structlog.get_logger(__name__)


class LootIndex:
    """
    Read-only lookups over one dataset.

    Built once by `build_index`; nothing mutates it afterwards, so any
    number of rolling threads can share it.
    """

    def __init__(
        self,
        dataset: LootDataset,
        tables_by_id: Dict[str, LootTable],
        tables_by_source: Dict[SourceType, Tuple[LootTable, ...]],
        tables_by_zone: Dict[GameZone, Tuple[LootTable, ...]],
        parts_by_id: Dict[str, PartDefinition],
        parts_by_slot: Dict[Tuple[PartCategory, RarityTier], Tuple[PartDefinition, ...]],
        receivers_by_manufacturer: Dict[Manufacturer, Tuple[PartDefinition, ...]],
        uniques_by_id: Dict[str, UniqueCompositeDefinition],
    ):
        self.dataset = dataset
        self._tables_by_id = MappingProxyType(tables_by_id)
        self._tables_by_source = MappingProxyType(tables_by_source)
        self._tables_by_zone = MappingProxyType(tables_by_zone)
        self._parts_by_id = MappingProxyType(parts_by_id)
        self._parts_by_slot = MappingProxyType(parts_by_slot)
        self._receivers_by_manufacturer = MappingProxyType(receivers_by_manufacturer)
        self._uniques_by_id = MappingProxyType(uniques_by_id)
        self._chest_tables = MappingProxyType({c.tier: c.table_id for c in dataset.chest_tiers})
        self._zone_drops = MappingProxyType({z.zone: z for z in dataset.zone_drops})

    # ---- tables ----

    @property
    def table_ids(self) -> List[str]:
        return list(self._tables_by_id)

    def get_table(self, table_id: str) -> LootTable:
        try:
            return self._tables_by_id[table_id]
        except KeyError:
            raise UnknownReferenceError(f"Unknown loot table '{table_id}'") from None

    def find_table(self, table_id: Optional[str]) -> Optional[LootTable]:
        if not table_id:
            return None
        return self._tables_by_id.get(table_id)

    def parent_of(self, table: LootTable) -> Optional[LootTable]:
        return self.find_table(table.parent_table_id)

    def tables_by_source(self, source: SourceType) -> Tuple[LootTable, ...]:
        return self._tables_by_source.get(source, ())

    def tables_by_zone(self, zone: GameZone) -> Tuple[LootTable, ...]:
        return self._tables_by_zone.get(zone, ())

    def matching_tables(
        self,
        source: SourceType,
        source_id: Optional[str] = None,
        zone: Optional[GameZone] = None,
    ) -> List[LootTable]:
        """Tables for a source, narrowed by specific source id and zone."""
        return [
            table
            for table in self.tables_by_source(source)
            if (not source_id or table.specific_source_id == source_id)
            and (zone is None or not table.applicable_zones or zone in table.applicable_zones)
        ]

    def chest_table(self, tier: ChestTier) -> Optional[LootTable]:
        return self.find_table(self._chest_tables.get(tier))

    def world_table(self, zone: Optional[GameZone]) -> Optional[LootTable]:
        config = self._zone_drops.get(zone)
        if config is not None and config.world_table_id:
            table = self.find_table(config.world_table_id)
            if table is not None:
                return table
        return self.find_table(self.dataset.default_world_table_id)

    def boss_table(self, zone: GameZone) -> Optional[LootTable]:
        config = self._zone_drops.get(zone)
        return self.find_table(config.boss_table_id) if config else None

    # ---- parts ----

    def get_part(self, part_id: str) -> PartDefinition:
        try:
            return self._parts_by_id[part_id]
        except KeyError:
            raise UnknownReferenceError(f"Unknown weapon part '{part_id}'") from None

    def find_part(self, part_id: str) -> Optional[PartDefinition]:
        return self._parts_by_id.get(part_id)

    def parts(self, category: PartCategory, rarity: RarityTier) -> Tuple[PartDefinition, ...]:
        return self._parts_by_slot.get((category, rarity), ())

    def parts_by_category(self, category: PartCategory) -> List[PartDefinition]:
        found = []
        for rarity in RarityTier:
            found.extend(self.parts(category, rarity))
        return found

    def receivers_by_manufacturer(self, manufacturer: Manufacturer) -> Tuple[PartDefinition, ...]:
        return self._receivers_by_manufacturer.get(manufacturer, ())

    # ---- uniques ----

    @property
    def uniques(self) -> List[UniqueCompositeDefinition]:
        return list(self._uniques_by_id.values())

    def get_unique(self, unique_id: str) -> UniqueCompositeDefinition:
        try:
            return self._uniques_by_id[unique_id]
        except KeyError:
            raise UnknownReferenceError(f"Unknown unique weapon '{unique_id}'") from None

    # ---- stats ----

    def statistics(self) -> Dict[str, Any]:
        tables = self.dataset.tables
        parts = self.dataset.parts
        return {
            "total_tables": len(tables),
            "tables_by_source": {
                source.value: len(found) for source, found in self._tables_by_source.items()
            },
            "tables_by_zone": {
                zone.value: len(found) for zone, found in self._tables_by_zone.items()
            },
            "total_entries": sum(len(t.all_entries()) for t in tables),
            "total_weight": sum(e.weight for t in tables for e in t.entries),
            "total_parts": len(parts),
            "parts_by_category": dict(Counter(p.category.name for p in parts)),
            "parts_by_rarity": dict(Counter(p.rarity.name for p in parts)),
            "receivers_by_manufacturer": {
                m.name: len(found) for m, found in self._receivers_by_manufacturer.items()
            },
            "total_uniques": len(self._uniques_by_id),
        }


def build_index(dataset: LootDataset) -> LootIndex:
    """Precompute every lookup the engine needs. Pure: no shared state is touched."""
    tables_by_id: Dict[str, LootTable] = {}
    tables_by_source: Dict[SourceType, List[LootTable]] = defaultdict(list)
    tables_by_zone: Dict[GameZone, List[LootTable]] = defaultdict(list)

    for table in dataset.tables:
        if table.table_id:
            tables_by_id[table.table_id] = table
        tables_by_source[table.source_type].append(table)
        for zone in table.applicable_zones:
            tables_by_zone[zone].append(table)

    parts_by_id: Dict[str, PartDefinition] = {}
    parts_by_slot: Dict[Tuple[PartCategory, RarityTier], List[PartDefinition]] = defaultdict(list)
    receivers: Dict[Manufacturer, List[PartDefinition]] = defaultdict(list)

    for part in dataset.parts:
        parts_by_slot[(part.category, part.rarity)].append(part)
        if part.category == MANUFACTURER_CATEGORY:
            receivers[part.manufacturer].append(part)
        if part.part_id:
            parts_by_id[part.part_id] = part

    return LootIndex(
        dataset=dataset,
        tables_by_id=tables_by_id,
        tables_by_source={k: tuple(v) for k, v in tables_by_source.items()},
        tables_by_zone={k: tuple(v) for k, v in tables_by_zone.items()},
        parts_by_id=parts_by_id,
        parts_by_slot={k: tuple(v) for k, v in parts_by_slot.items()},
        receivers_by_manufacturer={k: tuple(v) for k, v in receivers.items()},
        uniques_by_id={u.unique_id: u for u in dataset.uniques},
    )


class IndexHolder:
    """
    Owns the current index and swaps in rebuilt ones.

    `rebuild` validates and builds the new index before taking the lock,
    so readers always get either the old index or the complete new one.
    """

    def __init__(self, index: Optional[LootIndex] = None):
        self._index = index
        self._lock = threading.Lock()

    @property
    def index(self) -> LootIndex:
        with self._lock:
            index = self._index
        if index is None:
            raise UnknownReferenceError("No loot dataset has been loaded")
        return index

    def rebuild(self, dataset: LootDataset) -> LootIndex:
        ensure_valid(dataset)
        index = build_index(dataset)
        with self._lock:
            self._index = index

        logger.info(
            "loot_index_rebuilt",
            tables=len(dataset.tables),
            parts=len(dataset.parts),
            uniques=len(dataset.uniques),
        )
        return index
