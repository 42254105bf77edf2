from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from nexus_loot.errors import ConfigurationError, EmptyPoolError, UnknownReferenceError
from nexus_loot.index import IndexHolder
from nexus_loot.logging_config import get_logger, setup_logging
from nexus_loot.loot_loader import load_dataset
from nexus_loot.models.loot_models import LootDataset
from nexus_loot.routes import admin, loot, simulation, weapons
from nexus_loot.services.loot_service import LootService
from nexus_loot.settings import settings

logger = get_logger(__name__)


def create_app(dataset: Optional[LootDataset] = None) -> FastAPI:
    """Build the API around one dataset (the configured file when none is given)."""
    app = FastAPI(
        title=settings.app_name,
        description="Loot drop resolution and weapon part composition engine.",
        version=settings.version,
    )

    holder = IndexHolder()
    holder.rebuild(dataset if dataset is not None else load_dataset())
    app.state.loot_service = LootService(holder)

    # ============================================================
    # ERROR MAPPING
    # ============================================================

    @app.exception_handler(UnknownReferenceError)
    def unknown_reference(request: Request, exc: UnknownReferenceError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ConfigurationError)
    def configuration_error(request: Request, exc: ConfigurationError):
        logger.warning("configuration_error", path=request.url.path, detail=str(exc))
        return JSONResponse(status_code=422, content={"detail": str(exc), "errors": exc.errors})

    @app.exception_handler(EmptyPoolError)
    def empty_pool(request: Request, exc: EmptyPoolError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    # ============================================================
    # HEALTH CHECK
    # ============================================================

    @app.get("/health", tags=["Health"], response_model=dict)
    def health_check():
        return {"status": "ok"}

    app.include_router(admin.router)
    app.include_router(loot.router)
    app.include_router(weapons.router)
    app.include_router(simulation.router)
    return app


setup_logging(settings.log_level, settings.log_json)
app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
