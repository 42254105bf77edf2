import random

import pytest
from fastapi.testclient import TestClient

from nexus_loot.enums import ChestTier, GameZone, ItemType, Manufacturer, PartCategory, SourceType
from nexus_loot.index import IndexHolder, build_index
from nexus_loot.main import create_app
from nexus_loot.models.loot_models import (
    ChestTierConfig,
    DedicatedDropSource,
    LootDataset,
    LootTable,
    LootTableEntry,
    UniqueCompositeDefinition,
    ZoneDropConfig,
)
from nexus_loot.models.part_models import PartDefinition
from nexus_loot.rarity import RarityTier
from nexus_loot.services.loot_service import LootService


def make_part(part_id, category, rarity=RarityTier.common, **kwargs):
    return PartDefinition(part_id=part_id, name=part_id, category=category, rarity=rarity, **kwargs)


def make_parts(tiers=(RarityTier.common, RarityTier.rare, RarityTier.epic)):
    """Two receivers (kdc, tekcorp) and one part per other category for every tier given."""
    parts = []
    for tier in tiers:
        for manufacturer in (Manufacturer.kdc, Manufacturer.tekcorp):
            parts.append(make_part(
                f"receiver_{manufacturer.name}_{tier.name}",
                PartCategory.receiver,
                tier,
                manufacturer=manufacturer,
            ))
        for category in PartCategory:
            if category == PartCategory.receiver:
                continue
            parts.append(make_part(f"{category.name}_{tier.name}", category, tier))
    return parts


def make_table(table_id="basic", entries=None, **kwargs):
    if entries is None:
        entries = [LootTableEntry(item_type=ItemType.ammo, guaranteed=True, max_rarity=RarityTier.common)]
    return LootTable(table_id=table_id, entries=entries, **kwargs)


def make_dataset():
    base = make_table(
        "enemy_base",
        source_type=SourceType.enemy_scrapper,
        min_drops=1,
        max_drops=2,
        entries=[
            LootTableEntry(entry_name="Ammo", item_type=ItemType.ammo, weight=50, guaranteed=True,
                           max_rarity=RarityTier.common, min_quantity=5, max_quantity=10),
            LootTableEntry(entry_name="Pistol", item_type=ItemType.pistol, weight=20, base_drop_chance=0.5),
        ],
    )
    boss = make_table(
        "boss_warden",
        source_type=SourceType.enemy_boss,
        specific_source_id="warden",
        parent_table_id="enemy_base",
        min_drops=1,
        max_drops=1,
        bonus_drop_chance=0.0,
        entries=[
            LootTableEntry(entry_name="Boss Shield", item_type=ItemType.shield, specific_item_id="warden_shield",
                           guaranteed=True, min_rarity=RarityTier.rare, max_rarity=RarityTier.epic),
        ],
        difficulty_exclusive_entries=[
            LootTableEntry(entry_name="Mayhem Relic", item_type=ItemType.relic, specific_item_id="mayhem_relic",
                           guaranteed=True, min_rarity=RarityTier.epic, max_rarity=RarityTier.epic),
        ],
    )
    chest = make_table("chest_white", source_type=SourceType.chest_common)
    world = make_table("world_default", source_type=SourceType.world_common)
    unique = UniqueCompositeDefinition(
        unique_id="ironclad",
        display_name="Ironclad",
        flavor_text="Built to outlast you.",
        unique_effect_name="Unbreakable",
        rarity=RarityTier.legendary,
        item_type=ItemType.assault_rifle,
        fixed_parts={PartCategory.receiver: "receiver_kdc_legendary"},
        min_random_part_rarity=RarityTier.rare,
        max_random_part_rarity=RarityTier.epic,
        dedicated_sources=[
            DedicatedDropSource(source_type=SourceType.enemy_boss, source_id="warden", drop_chance=1.0),
        ],
    )
    parts = make_parts() + [
        make_part("receiver_kdc_legendary", PartCategory.receiver, RarityTier.legendary,
                  manufacturer=Manufacturer.kdc, world_drop_enabled=False),
    ]
    return LootDataset(
        tables=[base, boss, chest, world],
        parts=parts,
        uniques=[unique],
        chest_tiers=[ChestTierConfig(tier=ChestTier.white, table_id="chest_white")],
        zone_drops=[ZoneDropConfig(zone=GameZone.fractured_coast, boss_table_id="boss_warden")],
        default_world_table_id="world_default",
    )


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def dataset():
    return make_dataset()


@pytest.fixture
def index(dataset):
    return build_index(dataset)


@pytest.fixture
def service(dataset):
    holder = IndexHolder()
    holder.rebuild(dataset)
    return LootService(holder)


@pytest.fixture
def client(dataset):
    return TestClient(create_app(dataset))
