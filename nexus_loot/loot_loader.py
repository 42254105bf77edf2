import json
from pathlib import Path
from typing import Optional, Union

import structlog
from pydantic import ValidationError

from nexus_loot.errors import ConfigurationError
from nexus_loot.models.loot_models import LootDataset
from nexus_loot.settings import settings

logger = structlog.get_logger(__name__)


def parse_dataset(data: dict) -> LootDataset:
    try:
        return LootDataset.model_validate(data)
    except ValidationError as e:
        errors = [
            {
                "path": "$." + ".".join(str(part) for part in err["loc"]),
                "message": err["msg"],
            }
            for err in e.errors()
        ]
        raise ConfigurationError(f"Loot dataset failed schema validation ({len(errors)} error(s))", errors) from e


def load_dataset(path: Optional[Union[str, Path]] = None) -> LootDataset:
    dataset_path = Path(path or settings.dataset_path)

    with open(dataset_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    dataset = parse_dataset(data)
    logger.info(
        "loot_dataset_loaded",
        path=str(dataset_path),
        tables=len(dataset.tables),
        parts=len(dataset.parts),
        uniques=len(dataset.uniques),
    )
    return dataset
