from enum import Enum, IntEnum, IntFlag


class NamedIntEnum(IntEnum):
    """IntEnum that also accepts its member name (any case) as input."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            key = value.strip().lower().replace(" ", "_").replace("-", "_")
            if key in cls.__members__:
                return cls.__members__[key]
            if key.isdigit():
                return cls(int(key))
        return None


# -----------------------------
# WEAPON PARTS
# -----------------------------

class PartCategory(NamedIntEnum):
    receiver = 0   # determines manufacturer
    barrel = 1
    magazine = 2
    grip = 3
    stock = 4
    sight = 5


MANUFACTURER_CATEGORY = PartCategory.receiver


class PartSubType(NamedIntEnum):
    standard = 0
    special = 1
    exotic = 2


class Manufacturer(NamedIntEnum):
    kdc = 0
    frontier_arms = 1
    tekcorp = 2
    quantum_dynamics = 3
    void_industries = 4
    nexus_salvage = 5
    redline = 6


# -----------------------------
# LOOT
# -----------------------------

class ItemType(str, Enum):
    assault_rifle = "assault_rifle"
    smg = "smg"
    pistol = "pistol"
    shotgun = "shotgun"
    sniper_rifle = "sniper_rifle"
    rocket_launcher = "rocket_launcher"
    special_weapon = "special_weapon"

    shield = "shield"
    grenade_mod = "grenade_mod"
    class_mod = "class_mod"
    relic = "relic"

    health = "health"
    ammo = "ammo"
    currency = "currency"
    eridium = "eridium"

    weapon_skin = "weapon_skin"
    character_skin = "character_skin"
    vehicle_skin = "vehicle_skin"
    head_customization = "head_customization"

    quest_item = "quest_item"
    key_item = "key_item"
    legendary_hunt = "legendary_hunt"

    @property
    def is_weapon(self) -> bool:
        return self in WEAPON_TYPES


WEAPON_TYPES = frozenset({
    ItemType.assault_rifle,
    ItemType.smg,
    ItemType.pistol,
    ItemType.shotgun,
    ItemType.sniper_rifle,
    ItemType.rocket_launcher,
    ItemType.special_weapon,
})


class SourceType(str, Enum):
    enemy_scrapper = "enemy_scrapper"
    enemy_drone = "enemy_drone"
    enemy_bruiser = "enemy_bruiser"
    enemy_sniper = "enemy_sniper"
    enemy_technician = "enemy_technician"
    enemy_elite = "enemy_elite"
    enemy_badass = "enemy_badass"
    enemy_miniboss = "enemy_miniboss"
    enemy_boss = "enemy_boss"
    enemy_raidboss = "enemy_raidboss"

    chest_common = "chest_common"
    chest_uncommon = "chest_uncommon"
    chest_rare = "chest_rare"
    chest_epic = "chest_epic"
    chest_legendary = "chest_legendary"
    chest_vault = "chest_vault"

    quest_side = "quest_side"
    quest_main = "quest_main"
    quest_daily = "quest_daily"
    quest_weekly = "quest_weekly"

    world_common = "world_common"
    world_zone = "world_zone"
    world_event = "world_event"

    vendor_standard = "vendor_standard"
    vendor_special = "vendor_special"

    endgame_proving_ground = "endgame_proving_ground"
    endgame_circle_of_slaughter = "endgame_circle_of_slaughter"
    endgame_raid = "endgame_raid"
    endgame_mayhem_bonus = "endgame_mayhem_bonus"
    endgame_spiral = "endgame_spiral"


class GameZone(str, Enum):
    haven_city = "haven_city"
    fractured_coast = "fractured_coast"
    scorched_plateau = "scorched_plateau"
    crystal_caverns = "crystal_caverns"
    nexus_wasteland = "nexus_wasteland"
    core_facility = "core_facility"
    proving_ground_alpha = "proving_ground_alpha"
    proving_ground_beta = "proving_ground_beta"
    proving_ground_gamma = "proving_ground_gamma"
    circle_of_slaughter = "circle_of_slaughter"
    raid_nexus_core = "raid_nexus_core"
    raid_temporal_paradox = "raid_temporal_paradox"
    raid_singularity = "raid_singularity"
    the_spiral = "the_spiral"


class ChestTier(NamedIntEnum):
    white = 0
    green = 1
    blue = 2
    purple = 3
    orange = 4
    cyan = 5
    red = 6


class DropCondition(IntFlag):
    none = 0
    first_kill = 1 << 0
    coop = 1 << 1
    solo = 1 << 2
    mayhem_mode = 1 << 3
    mayhem_6_plus = 1 << 4
    quest_active = 1 << 5
    quest_complete = 1 << 6
    time_of_day = 1 << 7
    low_health = 1 << 8
    no_deaths = 1 << 9
