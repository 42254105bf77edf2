from typing import Any, Dict, List, Optional

import structlog

from nexus_loot.enums import MANUFACTURER_CATEGORY, PartCategory, PartSubType
from nexus_loot.errors import ConfigurationError
from nexus_loot.import_rules import (
    LEVEL_CAP,
    SPECIAL_EFFECT_RARITY_FLOOR,
    SUBTYPE_RARITY_FLOOR,
    UNIQUE_MINIMUM_RARITY,
)
from nexus_loot.models.loot_models import LootDataset, LootTable, LootTableEntry
from nexus_loot.rarity import RarityTier

logger = structlog.get_logger(__name__)


def validate_dataset(dataset: LootDataset) -> Dict[str, Any]:
    errors: List[Dict[str, str]] = []
    warnings: List[Dict[str, str]] = []

    summary = {
        "tables": len(dataset.tables),
        "entries": 0,
        "parts": len(dataset.parts),
        "uniques": len(dataset.uniques),
        "parts_by_category": {c.name: 0 for c in PartCategory},
    }

    # ---- tables ----
    tables_by_id: Dict[str, LootTable] = {}
    for i, table in enumerate(dataset.tables):
        path = f"$.tables[{i}]"

        if not table.table_id or not table.table_id.strip():
            errors.append({"path": f"{path}.table_id", "message": "Table ID is required."})
            continue

        if table.table_id in tables_by_id:
            errors.append({
                "path": f"{path}.table_id",
                "message": f"Duplicate table ID '{table.table_id}'.",
            })
            continue

        tables_by_id[table.table_id] = table

    for i, table in enumerate(dataset.tables):
        path = f"$.tables[{i}]<{table.table_id}>"

        if table.min_drops < 0:
            errors.append({"path": f"{path}.min_drops", "message": "min_drops must be >= 0."})
        if table.min_drops > table.max_drops:
            errors.append({
                "path": f"{path}.min_drops",
                "message": "Min drops cannot be greater than max drops.",
            })

        if not table.entries and not table.difficulty_exclusive_entries:
            if table.parent_table_id:
                warnings.append({
                    "path": path,
                    "message": "Table has no entries of its own and relies on its parent.",
                })
            else:
                errors.append({"path": path, "message": "Table has no entries and no parent table."})

        _validate_parent(table, tables_by_id, path, errors)

        for key in ("entries", "difficulty_exclusive_entries"):
            for j, entry in enumerate(getattr(table, key)):
                summary["entries"] += 1
                _validate_entry(entry, f"{path}.{key}[{j}]", errors)

        if table.global_manufacturer_weights:
            for j, mw in enumerate(table.global_manufacturer_weights):
                if mw.weight < 0:
                    errors.append({
                        "path": f"{path}.global_manufacturer_weights[{j}]",
                        "message": "Manufacturer weight must be >= 0.",
                    })

    for i, chest in enumerate(dataset.chest_tiers):
        if chest.table_id not in tables_by_id:
            errors.append({
                "path": f"$.chest_tiers[{i}]",
                "message": f"Chest tier {chest.tier.name} points at unknown table '{chest.table_id}'.",
            })

    for i, zone in enumerate(dataset.zone_drops):
        for key in ("world_table_id", "boss_table_id"):
            table_id = getattr(zone, key)
            if table_id and table_id not in tables_by_id:
                errors.append({
                    "path": f"$.zone_drops[{i}].{key}",
                    "message": f"Zone {zone.zone.value} points at unknown table '{table_id}'.",
                })

    if dataset.default_world_table_id and dataset.default_world_table_id not in tables_by_id:
        errors.append({
            "path": "$.default_world_table_id",
            "message": f"Unknown table '{dataset.default_world_table_id}'.",
        })

    # ---- parts ----
    part_ids = set()
    for i, part in enumerate(dataset.parts):
        path = f"$.parts[{i}]<{part.part_id}>"

        if not part.part_id or not part.part_id.strip():
            errors.append({"path": f"$.parts[{i}].part_id", "message": "Part ID is required."})
            continue
        if part.part_id in part_ids:
            errors.append({"path": path, "message": f"Duplicate part ID '{part.part_id}'."})
            continue
        part_ids.add(part.part_id)
        summary["parts_by_category"][part.category.name] += 1

        if part.drop_weight < 0:
            errors.append({"path": f"{path}.drop_weight", "message": "drop_weight must be >= 0."})

        if part.sub_type != PartSubType.standard and part.rarity < SUBTYPE_RARITY_FLOOR:
            errors.append({
                "path": f"{path}.sub_type",
                "message": (
                    f"{part.sub_type.name.capitalize()} parts are only available at "
                    f"{SUBTYPE_RARITY_FLOOR.name.capitalize()} rarity or higher."
                ),
            })

        if part.special_effects and part.rarity < SPECIAL_EFFECT_RARITY_FLOOR:
            warnings.append({
                "path": f"{path}.special_effects",
                "message": "Special effects should only be on Rare or higher rarity parts.",
            })

    if dataset.parts:
        # an empty common pool means the step-down fallback can run dry
        for category in PartCategory:
            has_common = any(
                p.category == category
                and p.rarity == RarityTier.common
                and p.world_drop_enabled
                and p.minimum_level == 1
                for p in dataset.parts
            )
            if not has_common:
                errors.append({
                    "path": f"$.parts<{category.name}>",
                    "message": (
                        f"Category {category.name} has no world-drop Common part available from level 1; "
                        "rarity fallback would find no candidates."
                    ),
                })

    parts_by_id = {p.part_id: p for p in dataset.parts}
    for i, part in enumerate(dataset.parts):
        path = f"$.parts[{i}]<{part.part_id}>.required_part_ids"
        for part_id in part.required_part_ids:
            required = parts_by_id.get(part_id)
            if required is None:
                errors.append({"path": path, "message": f"Unknown required part '{part_id}'."})
            elif required.category == part.category:
                errors.append({
                    "path": path,
                    "message": f"Required part '{part_id}' would fill this part's own {part.category.name} slot.",
                })
            elif part_id in part.incompatible_part_ids:
                errors.append({"path": path, "message": f"Part '{part_id}' is both required and incompatible."})

    # ---- uniques ----
    unique_ids = set()
    for i, unique in enumerate(dataset.uniques):
        path = f"$.uniques[{i}]<{unique.unique_id}>"

        if not unique.unique_id:
            errors.append({"path": f"$.uniques[{i}].unique_id", "message": "Unique ID is required."})
            continue
        if unique.unique_id in unique_ids:
            errors.append({"path": path, "message": f"Duplicate unique ID '{unique.unique_id}'."})
            continue
        unique_ids.add(unique.unique_id)

        if unique.rarity < UNIQUE_MINIMUM_RARITY:
            errors.append({
                "path": f"{path}.rarity",
                "message": f"Unique weapons must be Legendary or higher (current: {unique.rarity.name}).",
            })

        if not unique.fixed_parts:
            errors.append({"path": f"{path}.fixed_parts", "message": "At least one part must be fixed."})
        elif MANUFACTURER_CATEGORY not in unique.fixed_parts:
            errors.append({
                "path": f"{path}.fixed_parts",
                "message": "Fixed receiver is required (defines manufacturer and weapon identity).",
            })

        for category, part_id in unique.fixed_parts.items():
            part = parts_by_id.get(part_id)
            if part is None:
                errors.append({
                    "path": f"{path}.fixed_parts.{category.name}",
                    "message": f"Unknown part '{part_id}'.",
                })
            elif part.category != category:
                errors.append({
                    "path": f"{path}.fixed_parts.{category.name}",
                    "message": f"Fixed {category.name} must be a {category.name} part (got {part.category.name}).",
                })

        if unique.min_random_part_rarity > unique.max_random_part_rarity:
            errors.append({
                "path": f"{path}.min_random_part_rarity",
                "message": "Min random part rarity > max random part rarity.",
            })

        if not unique.unique_effect_name:
            warnings.append({"path": path, "message": "Unique effect name is recommended for unique weapons."})
        if not unique.flavor_text:
            warnings.append({"path": path, "message": "Flavor text is recommended for unique weapons."})

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "summary": summary,
    }


def ensure_valid(dataset: LootDataset) -> Dict[str, Any]:
    """Validate and raise ConfigurationError before any roll can see bad data."""
    result = validate_dataset(dataset)
    if not result["valid"]:
        logger.error("loot_dataset_invalid", error_count=len(result["errors"]))
        raise ConfigurationError(
            f"Loot dataset has {len(result['errors'])} configuration error(s)",
            result["errors"],
        )
    for warning in result["warnings"]:
        logger.warning("loot_dataset_warning", **warning)
    return result


def _validate_entry(entry: LootTableEntry, path: str, errors: List[Dict[str, str]]) -> None:
    label = entry.entry_name or entry.specific_item_id or entry.item_type.value

    if entry.weight < 0:
        errors.append({"path": f"{path}.weight", "message": f"Entry '{label}': weight must be >= 0."})

    if entry.min_rarity > entry.max_rarity:
        errors.append({"path": f"{path}.min_rarity", "message": f"Entry '{label}': Min rarity > max rarity."})

    if entry.min_quantity > entry.max_quantity:
        errors.append({
            "path": f"{path}.min_quantity",
            "message": f"Entry '{label}': Min quantity > max quantity.",
        })

    if entry.min_quantity < 1:
        errors.append({"path": f"{path}.min_quantity", "message": f"Entry '{label}': quantity must be >= 1."})

    if entry.max_level > 0 and entry.min_level > entry.max_level:
        errors.append({"path": f"{path}.min_level", "message": f"Entry '{label}': Min level > max level."})

    if not 0 <= entry.max_level <= LEVEL_CAP:
        errors.append({
            "path": f"{path}.max_level",
            "message": f"Entry '{label}': max_level must be 0 (no cap) or 1-{LEVEL_CAP}.",
        })

    if entry.custom_rarity_weights is not None and not entry.custom_rarity_weights:
        errors.append({
            "path": f"{path}.custom_rarity_weights",
            "message": f"Entry '{label}': custom rarity weights are enabled but empty.",
        })

    if entry.manufacturer_weights:
        for k, mw in enumerate(entry.manufacturer_weights):
            if mw.weight < 0:
                errors.append({
                    "path": f"{path}.manufacturer_weights[{k}]",
                    "message": f"Entry '{label}': manufacturer weight must be >= 0.",
                })


def _validate_parent(
    table: LootTable,
    tables_by_id: Dict[str, LootTable],
    path: str,
    errors: List[Dict[str, str]],
) -> None:
    parent_id: Optional[str] = table.parent_table_id
    if not parent_id:
        return

    if parent_id == table.table_id:
        errors.append({"path": f"{path}.parent_table_id", "message": "Table lists itself as its own parent."})
        return

    if parent_id not in tables_by_id:
        errors.append({"path": f"{path}.parent_table_id", "message": f"Unknown parent table '{parent_id}'."})
        return

    # inheritance is one level deep, but a cycle further up is still broken data
    seen = {table.table_id}
    current = tables_by_id.get(parent_id)
    while current is not None and current.parent_table_id:
        seen.add(current.table_id)
        if current.parent_table_id in seen:
            errors.append({
                "path": f"{path}.parent_table_id",
                "message": f"Parent chain of '{table.table_id}' loops back through '{current.parent_table_id}'.",
            })
            return
        current = tables_by_id.get(current.parent_table_id)
