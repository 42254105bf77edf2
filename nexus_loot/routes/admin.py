from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Request

from nexus_loot.dependencies import get_service
from nexus_loot.errors import ConfigurationError
from nexus_loot.import_validator import validate_dataset
from nexus_loot.loot_loader import load_dataset, parse_dataset
from nexus_loot.services.loot_service import LootService

router = APIRouter(tags=["Admin"])


@router.post(
    "/validate",
    summary="Validate a loot dataset without loading it",
    description="Returns errors (fatal) and warnings (non-fatal) with a path to each problem.",
    response_model=dict,
)
def validate(dataset: Dict[str, Any] = Body(...)):
    try:
        parsed = parse_dataset(dataset)
    except ConfigurationError as e:
        return {"valid": False, "errors": e.errors, "warnings": [], "summary": {}}
    return validate_dataset(parsed)


@router.post(
    "/admin/reload",
    summary="Rebuild the loot index",
    description="Loads the posted dataset, or re-reads the configured dataset file when no body is sent.",
    response_model=dict,
)
def reload_dataset(
    dataset: Optional[Dict[str, Any]] = Body(default=None),
    service: LootService = Depends(get_service),
):
    parsed = parse_dataset(dataset) if dataset is not None else load_dataset()
    index = service.holder.rebuild(parsed)
    return {"reloaded": True, **index.statistics()}


@router.get("/info", summary="API info and dataset overview", response_model=dict)
def info(request: Request, service: LootService = Depends(get_service)):
    return {
        "name": request.app.title,
        "version": request.app.version,
        **service.index.statistics(),
    }
