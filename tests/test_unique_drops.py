import random

import pytest

from nexus_loot.enums import ItemType, Manufacturer, PartCategory, SourceType
from nexus_loot.index import build_index
from nexus_loot.models.loot_models import DedicatedDropSource
from nexus_loot.rarity import RarityTier
from nexus_loot.unique_drops import (
    compose_unique,
    dedicated_chance,
    roll_dedicated_uniques,
    roll_world_unique,
    unique_can_drop,
)


class TestComposeUnique:
    def test_fixed_receiver_kept(self, index):
        definition = index.get_unique("ironclad")
        for seed in range(20):
            drop = compose_unique(definition, index, random.Random(seed), item_level=12)
            assert drop.parts[PartCategory.receiver] == "receiver_kdc_legendary"
            assert drop.manufacturer is Manufacturer.kdc
            assert drop.unique_id == drop.item_id == "ironclad"
            assert drop.item_type is ItemType.assault_rifle
            assert drop.item_level == 12

    def test_never_below_declared_rarity(self, index):
        definition = index.get_unique("ironclad")
        for seed in range(20):
            assert compose_unique(definition, index, random.Random(seed)).rarity >= RarityTier.legendary

    def test_random_parts_inside_bounds(self, index):
        definition = index.get_unique("ironclad")
        drop = compose_unique(definition, index, random.Random(3))
        for category, part_id in drop.parts.items():
            if category is PartCategory.receiver:
                continue
            assert RarityTier.rare <= index.get_part(part_id).rarity <= RarityTier.epic


class TestDedicatedDrops:
    def test_gates(self, index):
        definition = index.get_unique("ironclad").model_copy(
            update={"minimum_level": 20, "minimum_difficulty": 2}
        )
        assert not unique_can_drop(definition, 19, 5)
        assert not unique_can_drop(definition, 20, 1)
        assert unique_can_drop(definition, 20, 2)

    def test_difficulty_exclusive_needs_threshold(self, index):
        definition = index.get_unique("ironclad").model_copy(update={"difficulty_exclusive": True})
        assert not unique_can_drop(definition, 50, 5)
        assert unique_can_drop(definition, 50, 6)

    def test_chance_scales_and_clamps(self):
        source = DedicatedDropSource(source_type=SourceType.enemy_boss, drop_chance=0.05, difficulty_bonus_per_level=0.02)
        assert dedicated_chance(source, 5) == pytest.approx(0.15)
        certain = DedicatedDropSource(source_type=SourceType.enemy_boss, drop_chance=0.95, difficulty_bonus_per_level=0.1)
        assert dedicated_chance(certain, 10) == 1.0

    def test_matching_source_drops(self, index, rng):
        drops = roll_dedicated_uniques(index, SourceType.enemy_boss, "warden", 1, 0, rng)
        assert [d.unique_id for d in drops] == ["ironclad"]

    def test_other_source_id_does_not(self, index, rng):
        assert roll_dedicated_uniques(index, SourceType.enemy_boss, "someone_else", 1, 0, rng) == []
        assert roll_dedicated_uniques(index, SourceType.chest_vault, None, 1, 0, rng) == []


class TestWorldDrops:
    def world_index(self, dataset, **update):
        unique = dataset.uniques[0].model_copy(update={"world_drop_enabled": True, **update})
        return build_index(dataset.model_copy(update={"uniques": [unique]}))

    def test_only_world_enabled_uniques(self, index, rng):
        assert roll_world_unique(index, 50, 0.0, 0, rng, chance=1.0) is None

    def test_certain_chance_drops(self, dataset, rng):
        drop = roll_world_unique(self.world_index(dataset), 20, 0.0, 0, rng, chance=1.0)
        assert drop.unique_id == "ironclad"
        assert drop.item_level == 20

    def test_zero_chance_and_gates(self, dataset, rng):
        index = self.world_index(dataset, minimum_level=30)
        assert roll_world_unique(index, 50, 0.0, 0, rng, chance=0.0) is None
        assert roll_world_unique(index, 29, 0.0, 0, rng, chance=1.0) is None

    def test_zero_weight_never_drops(self, dataset, rng):
        index = self.world_index(dataset, base_drop_weight=0.0)
        assert roll_world_unique(index, 50, 0.0, 0, rng, chance=1.0) is None

    def test_pick_follows_base_drop_weight(self, dataset):
        heavy = dataset.uniques[0].model_copy(update={"world_drop_enabled": True, "base_drop_weight": 1000.0})
        light = dataset.uniques[0].model_copy(
            update={"unique_id": "featherweight", "world_drop_enabled": True, "base_drop_weight": 1.0}
        )
        index = build_index(dataset.model_copy(update={"uniques": [heavy, light]}))
        picked = [roll_world_unique(index, 50, 0.0, 0, random.Random(seed), chance=1.0).unique_id for seed in range(50)]
        assert picked.count("ironclad") >= 45
