from fastapi import APIRouter, Depends, HTTPException

from nexus_loot.dependencies import get_service
from nexus_loot.drop_engine import effective_entries
from nexus_loot.schemas import SimulationRequest
from nexus_loot.services.loot_service import LootService
from nexus_loot.settings import settings

router = APIRouter(tags=["Simulation"])


@router.get("/tables", summary="List loot table ids", response_model=list)
def list_tables(service: LootService = Depends(get_service)):
    return service.index.table_ids


@router.get("/tables/{table_id}/stats", summary="Entry counts and weights for one table", response_model=dict)
def table_stats(table_id: str, service: LootService = Depends(get_service)):
    stats = service.table_statistics(table_id)
    table = service.index.get_table(table_id)
    stats["inherited_entries"] = len(effective_entries(table, 0, service.index.parent_of(table))) - len(table.entries)
    return stats


@router.post(
    "/simulate",
    summary="Run a drop simulation against one table",
    description="Returns rarity / type / manufacturer counts over N independent rolls.",
    response_model=dict,
)
def simulate(req: SimulationRequest, service: LootService = Depends(get_service)):
    if req.simulations > settings.max_simulations:
        raise HTTPException(400, "Simulation limit exceeded")
    if req.workers > settings.simulation_workers:
        raise HTTPException(400, f"At most {settings.simulation_workers} simulation workers allowed")

    return service.simulate(
        req.table_id,
        req.simulations,
        req.player_level,
        luck=req.luck,
        difficulty_tier=req.difficulty_tier,
        conditions=req.conditions,
        seed=req.seed,
        workers=req.workers,
    )
