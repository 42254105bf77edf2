from fastapi import APIRouter, Depends

from nexus_loot.dependencies import get_service
from nexus_loot.rng import get_rng
from nexus_loot.schemas import ComposeRequest, UniqueRequest
from nexus_loot.services.loot_service import LootService

router = APIRouter(prefix="/weapon", tags=["Weapons"])


@router.post(
    "/compose",
    summary="Assemble a weapon from part pools",
    description="Fixed parts are kept, the rest are rolled; rarity is the banded mean of part rarities.",
    response_model=dict,
)
def compose_weapon(req: ComposeRequest, service: LootService = Depends(get_service)):
    composed = service.compose_weapon(
        get_rng(req.seed),
        fixed_part_ids=req.fixed_parts,
        min_rarity=req.min_rarity,
        max_rarity=req.max_rarity,
        preferred_manufacturers=req.preferred_manufacturers,
        player_level=req.player_level,
    )
    return {
        "parts": {c.name: p.model_dump(mode="json") for c, p in composed.parts.items()},
        "mean_rarity": round(composed.mean_rarity, 4),
        "rarity": composed.effective_rarity.name,
        "manufacturer": composed.manufacturer.name if composed.manufacturer is not None else None,
        "degraded_categories": [c.name for c in composed.degraded_categories],
    }


@router.post(
    "/unique/{unique_id}",
    summary="Assemble a named unique weapon",
    response_model=dict,
)
def compose_unique(unique_id: str, req: UniqueRequest, service: LootService = Depends(get_service)):
    drop = service.compose_unique(unique_id, get_rng(req.seed), player_level=req.player_level)
    return {"drop": drop.model_dump(mode="json")}
