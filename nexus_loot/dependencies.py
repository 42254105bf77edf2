from fastapi import Request

from nexus_loot.services.loot_service import LootService


def get_service(request: Request) -> LootService:
    return request.app.state.loot_service
