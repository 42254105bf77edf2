from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from nexus_loot.conditions import ConditionFlags
from nexus_loot.enums import (
    ChestTier,
    DropCondition,
    GameZone,
    ItemType,
    Manufacturer,
    PartCategory,
    SourceType,
)
from nexus_loot.import_rules import LEVEL_CAP, MAX_DIFFICULTY
from nexus_loot.models.part_models import PartDefinition
from nexus_loot.rarity import RarityDistribution, RarityTier, RarityWeightOverride

# Cross-field rules (min <= max, weights >= 0, parent references) are
# checked by import_validator so a broken dataset still loads and gets a
# full report instead of failing on the first bad field.


class ManufacturerWeight(BaseModel):
    model_config = ConfigDict(frozen=True)

    manufacturer: Manufacturer
    weight: float


class LootTableEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    entry_name: str = ""
    item_type: ItemType
    specific_item_id: Optional[str] = None

    weight: float = 10.0
    base_drop_chance: float = Field(default=0.1, ge=0.0, le=1.0)
    guaranteed: bool = False

    min_rarity: RarityTier = RarityTier.common
    max_rarity: RarityTier = RarityTier.legendary
    custom_rarity_weights: Optional[List[RarityWeightOverride]] = None
    manufacturer_weights: Optional[List[ManufacturerWeight]] = None

    min_level: int = 1
    max_level: int = Field(default=0, description="0 = no cap")

    required_conditions: ConditionFlags = DropCondition.none
    required_quest_id: Optional[str] = None

    min_quantity: int = 1
    max_quantity: int = 1

    def custom_distribution(self) -> Optional[RarityDistribution]:
        if not self.custom_rarity_weights:
            return None
        return RarityDistribution.from_overrides(self.custom_rarity_weights)

    def level_allows(self, player_level: int) -> bool:
        if player_level < self.min_level:
            return False
        return self.max_level == 0 or player_level <= self.max_level


class LootTable(BaseModel):
    model_config = ConfigDict(frozen=True)

    table_id: str
    table_name: str = ""
    description: str = ""

    source_type: SourceType = SourceType.world_common
    specific_source_id: Optional[str] = None
    applicable_zones: List[GameZone] = Field(default_factory=list)

    rarity_distribution: RarityDistribution = Field(default_factory=RarityDistribution)
    global_manufacturer_weights: Optional[List[ManufacturerWeight]] = None

    entries: List[LootTableEntry] = Field(default_factory=list)

    min_drops: int = 1
    max_drops: int = 3
    bonus_drop_chance: float = Field(default=0.1, ge=0.0, le=1.0)

    minimum_player_level: int = 1
    level_range: int = Field(default=3, ge=0, le=10)

    minimum_difficulty: int = Field(default=0, ge=0, le=MAX_DIFFICULTY)
    difficulty_exclusive_entries: List[LootTableEntry] = Field(default_factory=list)

    guaranteed_drop: bool = True
    allow_duplicates: bool = True

    parent_table_id: Optional[str] = None

    def all_entries(self) -> List[LootTableEntry]:
        return list(self.entries) + list(self.difficulty_exclusive_entries)


class DedicatedDropSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_type: SourceType
    source_id: Optional[str] = None
    drop_chance: float = Field(default=0.05, ge=0.0, le=1.0)
    difficulty_bonus_per_level: float = Field(default=0.01, ge=0.0, le=0.1)


class UniqueCompositeDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    unique_id: str
    display_name: str = ""
    flavor_text: str = ""
    unique_effect_name: str = ""

    rarity: RarityTier = RarityTier.legendary
    item_type: ItemType = ItemType.assault_rifle
    fixed_parts: Dict[PartCategory, str] = Field(
        default_factory=dict,
        description="Part id per fixed category; missing categories are randomized",
    )

    min_random_part_rarity: RarityTier = RarityTier.rare
    max_random_part_rarity: RarityTier = RarityTier.legendary
    preferred_manufacturers: List[Manufacturer] = Field(default_factory=list)

    base_drop_weight: float = 10.0
    minimum_level: int = 1
    minimum_difficulty: int = 0
    difficulty_exclusive: bool = False
    world_drop_enabled: bool = False
    dedicated_sources: List[DedicatedDropSource] = Field(default_factory=list)


class ChestTierConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    tier: ChestTier
    table_id: str


class ZoneDropConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    zone: GameZone
    world_table_id: Optional[str] = None
    boss_table_id: Optional[str] = None


class LootDataset(BaseModel):
    """Everything the authoring tools hand to the engine."""

    model_config = ConfigDict(frozen=True)

    tables: List[LootTable] = Field(default_factory=list)
    parts: List[PartDefinition] = Field(default_factory=list)
    uniques: List[UniqueCompositeDefinition] = Field(default_factory=list)

    chest_tiers: List[ChestTierConfig] = Field(default_factory=list)
    zone_drops: List[ZoneDropConfig] = Field(default_factory=list)
    default_world_table_id: Optional[str] = None

    global_luck_modifier: float = Field(default=0.0, ge=-0.5, le=2.0)
    global_rarity_boost: float = Field(default=1.0, ge=0.5, le=3.0)


# -----------------------------
# ROLL INPUT / OUTPUT
# -----------------------------

class RollContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_type: SourceType
    source_id: Optional[str] = None
    player_level: int = Field(default=1, ge=1, le=LEVEL_CAP)
    luck: float = 0.0
    difficulty_tier: int = Field(default=0, ge=0, le=MAX_DIFFICULTY)
    conditions: ConditionFlags = DropCondition.none
    zone: Optional[GameZone] = None
    active_quest_ids: List[str] = Field(default_factory=list)


class LootDrop(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_type: ItemType
    item_id: str
    display_name: str = ""
    rarity: RarityTier
    manufacturer: Optional[Manufacturer] = None
    quantity: int = 1
    item_level: int = 1
    parts: Optional[Dict[PartCategory, str]] = None
    unique_id: Optional[str] = None
    source_table_id: Optional[str] = None
