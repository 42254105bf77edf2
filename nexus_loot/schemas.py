from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from nexus_loot.conditions import ConditionFlags
from nexus_loot.enums import ChestTier, DropCondition, GameZone, Manufacturer, PartCategory, SourceType
from nexus_loot.import_rules import LEVEL_CAP, MAX_DIFFICULTY
from nexus_loot.rarity import RarityTier

# -----------------------------
# BASE DROP REQUEST
# -----------------------------

class DropRequest(BaseModel):
    seed: Optional[int] = Field(
        default=None,
        description="Optional RNG seed for deterministic results. "
                    "Same seed always produces same drop order."
    )


class PlayerContextRequest(DropRequest):
    player_level: int = Field(default=1, ge=1, le=LEVEL_CAP)
    luck: float = Field(
        default=0.0,
        ge=-1.0,
        le=5.0,
        description="Luck modifier (can be negative). Scales bonus drop and drop chances."
    )
    difficulty_tier: int = Field(default=0, ge=0, le=MAX_DIFFICULTY, description="Mayhem tier 0-10")
    conditions: ConditionFlags = Field(
        default=DropCondition.none,
        description='Active drop conditions, e.g. ["coop", "first_kill"]'
    )
    active_quest_ids: List[str] = Field(
        default_factory=list,
        description="Quests the player currently has active; unlocks quest-gated entries"
    )


# -----------------------------
# DROPS
# -----------------------------

class SourceDropRequest(PlayerContextRequest):
    source_type: SourceType
    source_id: Optional[str] = Field(default=None, description="Specific enemy / chest / quest id")
    zone: Optional[GameZone] = None


class TableDropRequest(PlayerContextRequest):
    pass


class ChestDropRequest(PlayerContextRequest):
    tier: ChestTier


class WorldDropRequest(PlayerContextRequest):
    zone: Optional[GameZone] = None


class BossDropRequest(PlayerContextRequest):
    zone: GameZone


# -----------------------------
# WEAPONS
# -----------------------------

class ComposeRequest(DropRequest):
    fixed_parts: Dict[PartCategory, str] = Field(
        default_factory=dict,
        description="Part id per category to keep fixed; the rest are rolled"
    )
    min_rarity: RarityTier = RarityTier.common
    max_rarity: RarityTier = RarityTier.apocalypse
    preferred_manufacturers: List[Manufacturer] = Field(default_factory=list)
    player_level: Optional[int] = Field(default=None, ge=1, le=LEVEL_CAP)

    @model_validator(mode="after")
    def bounds_ordered(self):
        if self.min_rarity > self.max_rarity:
            raise ValueError("min_rarity cannot be above max_rarity")
        return self


class UniqueRequest(DropRequest):
    player_level: int = Field(default=1, ge=1, le=LEVEL_CAP)


# -----------------------------
# SIMULATION REQUEST
# -----------------------------

class SimulationRequest(PlayerContextRequest):
    table_id: str
    simulations: int = Field(
        default=1000,
        ge=1,
        le=100_000,
        description="Number of simulated rolls. Max: 100,000"
    )
    workers: int = Field(
        default=1,
        ge=1,
        le=16,
        description="Worker threads to split the rolls across. Seeded results depend on this count."
    )
