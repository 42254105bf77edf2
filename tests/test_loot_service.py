import random

import pytest

from conftest import make_table
from nexus_loot.enums import ChestTier, DropCondition, GameZone, ItemType, Manufacturer, PartCategory, SourceType
from nexus_loot.errors import ConfigurationError, UnknownReferenceError
from nexus_loot.index import IndexHolder
from nexus_loot.models.loot_models import LootTableEntry, RollContext
from nexus_loot.services.loot_service import LootService
from nexus_loot.settings import settings


class TestRolls:
    def test_source_rolls_tables_and_dedicated_uniques(self, service):
        context = RollContext(source_type=SourceType.enemy_boss, source_id="warden", player_level=5)
        drops = service.roll_source(context, random.Random(8))
        assert "ironclad" in [d.unique_id for d in drops]
        assert any(d.source_table_id == "boss_warden" for d in drops)

    def test_unknown_source_drops_nothing(self, service):
        context = RollContext(source_type=SourceType.quest_main)
        assert service.roll_source(context, random.Random(1)) == []

    def test_difficulty_unlocks_exclusive_entries(self, service):
        rolled = set()
        for seed in range(40):
            rolled.update(d.item_id for d in service.roll_table("boss_warden", 10, 0.0, 6, DropCondition.none, random.Random(seed)))
        assert "mayhem_relic" in rolled

    def test_chest_tiers(self, service):
        assert service.roll_chest(ChestTier.red, 10, 0.0, 0, random.Random(1)) == []
        drops = service.roll_chest(ChestTier.white, 10, 0.0, 0, random.Random(1))
        assert drops and all(d.item_type is ItemType.ammo for d in drops)

    def test_world_falls_back_to_default(self, service):
        drops = service.roll_world(GameZone.fractured_coast, 10, 0.0, 0, random.Random(1))
        assert drops and drops[0].source_table_id == "world_default"

    def test_same_seed_same_result(self, service):
        context = RollContext(source_type=SourceType.enemy_scrapper, player_level=20, luck=0.5, difficulty_tier=3)
        assert service.roll_source(context, random.Random(42)) == service.roll_source(context, random.Random(42))

    def test_boss_rolls_zone_boss_and_its_uniques(self, service):
        drops = service.roll_boss(GameZone.fractured_coast, 10, 0.0, 0, DropCondition.none, random.Random(2))
        assert "ironclad" in [d.unique_id for d in drops]
        assert all(d.source_table_id == "boss_warden" for d in drops if d.unique_id is None)

    def test_zone_without_boss_table(self, service):
        with pytest.raises(UnknownReferenceError):
            service.roll_boss(GameZone.haven_city, 10, 0.0, 0, DropCondition.none, random.Random(2))

    def test_world_drop_unique(self, dataset, monkeypatch):
        unique = dataset.uniques[0].model_copy(update={"world_drop_enabled": True})
        holder = IndexHolder()
        holder.rebuild(dataset.model_copy(update={"uniques": [unique]}))
        monkeypatch.setattr(settings, "world_unique_chance", 1.0)
        drops = LootService(holder).roll_world(None, 10, 0.0, 0, random.Random(3))
        assert drops[-1].unique_id == "ironclad"

    def test_quest_gated_entries_need_active_quest(self, dataset):
        gated = make_table(
            "quest_reward",
            source_type=SourceType.quest_main,
            specific_source_id="lost_signal",
            min_drops=1,
            max_drops=1,
            bonus_drop_chance=0.0,
            entries=[LootTableEntry(item_type=ItemType.relic, specific_item_id="signal_relic", guaranteed=True,
                                    required_quest_id="lost_signal")],
        )
        holder = IndexHolder()
        holder.rebuild(dataset.model_copy(update={"tables": dataset.tables + [gated]}))
        service = LootService(holder)
        context = RollContext(source_type=SourceType.quest_main, source_id="lost_signal")
        assert service.roll_source(context, random.Random(1)) == []
        context = context.model_copy(update={"active_quest_ids": ["lost_signal"]})
        assert [d.item_id for d in service.roll_source(context, random.Random(1))] == ["signal_relic"]


class TestWeapons:
    def test_compose_resolves_fixed_ids(self, service):
        composed = service.compose_weapon(random.Random(1), fixed_part_ids={PartCategory.receiver: "receiver_tekcorp_rare"})
        assert composed.manufacturer.name == "tekcorp"

    def test_compose_rejects_part_in_wrong_slot(self, service):
        with pytest.raises(ConfigurationError) as exc:
            service.compose_weapon(random.Random(1), fixed_part_ids={PartCategory.barrel: "receiver_tekcorp_rare"})
        assert exc.value.errors == [{"path": "$.fixed_parts.barrel", "message": "expected a barrel part"}]

    def test_preferred_manufacturer_without_receivers_still_composes(self, service):
        composed = service.compose_weapon(random.Random(1), preferred_manufacturers=(Manufacturer.redline,))
        assert composed.manufacturer in (Manufacturer.kdc, Manufacturer.tekcorp)

    def test_compose_unique_uses_player_level(self, service):
        drop = service.compose_unique("ironclad", random.Random(1), player_level=33)
        assert drop.item_level == 33


class TestSimulation:
    def test_counts_add_up(self, service):
        result = service.simulate("enemy_base", 500, 10, seed=5)
        assert result["simulations"] == 500
        assert sum(result["rarity_counts"].values()) == result["total_drops"]
        assert sum(result["type_counts"].values()) == result["total_drops"]
        assert sum(result["rarity_distribution"].values()) == pytest.approx(100.0, abs=0.01)
        assert result["empty_rolls"] == 0

    def test_seeded_simulation_repeats(self, service):
        assert service.simulate("enemy_base", 50, 10, seed=9) == service.simulate("enemy_base", 50, 10, seed=9)

    def test_table_statistics(self, service):
        assert service.table_statistics("enemy_base")["total_entries"] == 2

    def test_worker_batches_cover_every_roll(self, service):
        result = service.simulate("enemy_base", 301, 10, seed=3, workers=4)
        assert result["simulations"] == 301
        assert result["empty_rolls"] == 0
        assert result["total_drops"] >= 301

    def test_seeded_workers_repeat(self, service):
        first = service.simulate("enemy_base", 120, 10, seed=9, workers=3)
        second = service.simulate("enemy_base", 120, 10, seed=9, workers=3)
        assert first == second
