from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from nexus_loot.enums import Manufacturer, PartCategory, PartSubType
from nexus_loot.import_rules import LEVEL_CAP
from nexus_loot.rarity import RarityTier


class PartDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    part_id: str = Field(..., description="Unique identifier for this part")
    name: str = ""
    category: PartCategory
    rarity: RarityTier = RarityTier.common
    sub_type: PartSubType = PartSubType.standard
    manufacturer: Manufacturer = Field(
        default=Manufacturer.kdc,
        description="Only meaningful for receivers",
    )
    drop_weight: float = Field(default=10.0, description="Higher = more common")
    minimum_level: int = Field(default=1, ge=1, le=LEVEL_CAP)
    world_drop_enabled: bool = Field(
        default=True,
        description="May appear in open-world rolls",
    )
    incompatible_part_ids: List[str] = Field(default_factory=list)
    required_part_ids: List[str] = Field(
        default_factory=list,
        description="Parts that must fill their slots whenever this part is used",
    )
    special_effects: List[str] = Field(default_factory=list)


class ComposedItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    parts: Dict[PartCategory, PartDefinition]
    mean_rarity: float
    effective_rarity: RarityTier
    manufacturer: Optional[Manufacturer] = None
    degraded_categories: List[PartCategory] = Field(default_factory=list)

    def part_ids(self) -> Dict[PartCategory, str]:
        return {category: part.part_id for category, part in self.parts.items()}
