import json

import pytest

from nexus_loot.enums import DropCondition, PartCategory
from nexus_loot.errors import ConfigurationError
from nexus_loot.loot_loader import load_dataset, parse_dataset
from nexus_loot.rarity import RarityTier


def test_bundled_dataset_loads():
    dataset = load_dataset()
    assert len(dataset.tables) == 7
    assert {u.unique_id for u in dataset.uniques} == {"the_singularity", "ironclad"}
    assert dataset.default_world_table_id == "world_default"


def test_names_parse_into_enums(tmp_path):
    path = tmp_path / "loot.json"
    path.write_text(json.dumps({
        "tables": [{
            "table_id": "t",
            "entries": [{"item_type": "relic", "min_rarity": "Rare", "max_rarity": "epic", "required_conditions": ["coop"]}],
        }],
        "parts": [{"part_id": "p", "category": "grip", "rarity": "legendary"}],
    }))
    dataset = load_dataset(path)
    entry = dataset.tables[0].entries[0]
    assert entry.min_rarity is RarityTier.rare
    assert entry.required_conditions == DropCondition.coop
    assert dataset.parts[0].category is PartCategory.grip


def test_schema_errors_carry_paths():
    with pytest.raises(ConfigurationError) as exc:
        parse_dataset({"tables": [{"entries": [{"item_type": "banana"}]}]})
    paths = {e["path"] for e in exc.value.errors}
    assert "$.tables.0.table_id" in paths
    assert "$.tables.0.entries.0.item_type" in paths


def test_missing_file_propagates(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_dataset(tmp_path / "missing.json")
