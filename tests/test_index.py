import pytest

from conftest import make_dataset, make_table
from nexus_loot.enums import ChestTier, GameZone, Manufacturer, PartCategory, SourceType
from nexus_loot.errors import ConfigurationError, UnknownReferenceError
from nexus_loot.index import IndexHolder, build_index
from nexus_loot.models.loot_models import LootDataset
from nexus_loot.rarity import RarityTier


class TestLootIndex:
    def test_table_lookup(self, index):
        assert index.get_table("boss_warden").specific_source_id == "warden"
        assert index.find_table("ghost") is None
        with pytest.raises(UnknownReferenceError) as exc:
            index.get_table("ghost")
        assert str(exc.value) == "Unknown loot table 'ghost'"

    def test_parent_of(self, index):
        assert index.parent_of(index.get_table("boss_warden")).table_id == "enemy_base"
        assert index.parent_of(index.get_table("enemy_base")) is None

    def test_matching_tables(self, index):
        assert [t.table_id for t in index.matching_tables(SourceType.enemy_boss, "warden")] == ["boss_warden"]
        assert index.matching_tables(SourceType.enemy_boss, "other") == []
        assert [t.table_id for t in index.matching_tables(SourceType.enemy_scrapper, zone=GameZone.haven_city)] == [
            "enemy_base"
        ]

    def test_tables_by_zone(self, dataset):
        zoned = make_table("coast_only", applicable_zones=[GameZone.fractured_coast])
        index = build_index(dataset.model_copy(update={"tables": dataset.tables + [zoned]}))
        assert [t.table_id for t in index.tables_by_zone(GameZone.fractured_coast)] == ["coast_only"]
        assert index.tables_by_zone(GameZone.haven_city) == ()
        assert index.matching_tables(SourceType.world_common, zone=GameZone.haven_city)[0].table_id == "world_default"

    def test_chest_world_and_boss_tables(self, index):
        assert index.chest_table(ChestTier.white).table_id == "chest_white"
        assert index.chest_table(ChestTier.red) is None
        assert index.world_table(None).table_id == "world_default"
        assert index.world_table(GameZone.fractured_coast).table_id == "world_default"
        assert index.boss_table(GameZone.fractured_coast).table_id == "boss_warden"
        assert index.boss_table(GameZone.haven_city) is None

    def test_part_pools(self, index):
        assert [p.part_id for p in index.parts(PartCategory.magazine, RarityTier.epic)] == ["magazine_epic"]
        assert index.parts(PartCategory.magazine, RarityTier.apocalypse) == ()
        assert len(index.parts_by_category(PartCategory.receiver)) == 7
        assert len(index.receivers_by_manufacturer(Manufacturer.kdc)) == 4
        with pytest.raises(UnknownReferenceError):
            index.get_part("nope")

    def test_statistics(self, index):
        stats = index.statistics()
        assert stats["total_tables"] == 4
        assert stats["total_parts"] == 22
        assert stats["total_uniques"] == 1
        assert stats["tables_by_source"]["enemy_boss"] == 1


class TestIndexHolder:
    def test_empty_holder(self):
        with pytest.raises(UnknownReferenceError):
            IndexHolder().index

    def test_rebuild_swaps_index(self):
        holder = IndexHolder()
        first = holder.rebuild(make_dataset())
        second = holder.rebuild(LootDataset(tables=[make_table("only")]))
        assert holder.index is second
        assert first.table_ids != second.table_ids

    def test_invalid_rebuild_keeps_previous_index(self):
        holder = IndexHolder(build_index(make_dataset()))
        previous = holder.index
        with pytest.raises(ConfigurationError):
            holder.rebuild(LootDataset(tables=[make_table("loop", parent_table_id="loop")]))
        assert holder.index is previous
