from fastapi import APIRouter, Depends

from nexus_loot.dependencies import get_service
from nexus_loot.models.loot_models import RollContext
from nexus_loot.rng import get_rng
from nexus_loot.schemas import (
    BossDropRequest,
    ChestDropRequest,
    SourceDropRequest,
    TableDropRequest,
    WorldDropRequest,
)
from nexus_loot.services.loot_service import LootService

router = APIRouter(prefix="/drop", tags=["Drops"])


def _drops_payload(drops):
    return {"count": len(drops), "drops": [d.model_dump(mode="json") for d in drops]}


@router.post(
    "",
    summary="Roll every table for a loot source",
    description="Enemy died, chest opened, quest completed: all matching tables plus dedicated unique drops.",
    response_model=dict,
)
def drop_from_source(req: SourceDropRequest, service: LootService = Depends(get_service)):
    context = RollContext(
        source_type=req.source_type,
        source_id=req.source_id,
        player_level=req.player_level,
        luck=req.luck,
        difficulty_tier=req.difficulty_tier,
        conditions=req.conditions,
        zone=req.zone,
        active_quest_ids=req.active_quest_ids,
    )
    drops = service.roll_source(context, get_rng(req.seed))
    return {"source_type": req.source_type.value, "source_id": req.source_id, **_drops_payload(drops)}


@router.post(
    "/table/{table_id}",
    summary="Roll a single loot table",
    response_model=dict,
)
def drop_from_table(table_id: str, req: TableDropRequest, service: LootService = Depends(get_service)):
    drops = service.roll_table(
        table_id, req.player_level, req.luck, req.difficulty_tier, req.conditions, get_rng(req.seed),
        req.active_quest_ids,
    )
    return {"table_id": table_id, **_drops_payload(drops)}


@router.post(
    "/chest",
    summary="Roll the table configured for a chest tier",
    response_model=dict,
)
def drop_from_chest(req: ChestDropRequest, service: LootService = Depends(get_service)):
    drops = service.roll_chest(
        req.tier, req.player_level, req.luck, req.difficulty_tier, get_rng(req.seed), req.active_quest_ids,
    )
    return {"tier": req.tier.name, **_drops_payload(drops)}


@router.post(
    "/world",
    summary="Roll the world drop table for a zone",
    description="Falls back to the default world table when the zone has none.",
    response_model=dict,
)
def drop_from_world(req: WorldDropRequest, service: LootService = Depends(get_service)):
    drops = service.roll_world(
        req.zone, req.player_level, req.luck, req.difficulty_tier, get_rng(req.seed), req.active_quest_ids,
    )
    return {"zone": req.zone.value if req.zone else None, **_drops_payload(drops)}


@router.post(
    "/boss",
    summary="Roll a zone's boss",
    description="The zone's boss table, its parent and any uniques dedicated to that boss.",
    response_model=dict,
)
def drop_from_boss(req: BossDropRequest, service: LootService = Depends(get_service)):
    drops = service.roll_boss(
        req.zone, req.player_level, req.luck, req.difficulty_tier, req.conditions, get_rng(req.seed),
        req.active_quest_ids,
    )
    return {"zone": req.zone.value, **_drops_payload(drops)}
