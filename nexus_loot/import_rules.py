from nexus_loot.rarity import RarityTier

# Game-rule constants. These are balance parity values, not deployment
# settings, so they stay out of Settings.

LEVEL_CAP = 50
MAX_DIFFICULTY = 10

# +1 drop roll per this many difficulty tiers
DIFFICULTY_DROP_STEP = 3

# difficulty-exclusive entries and uniques unlock at this tier
DIFFICULTY_EXCLUSIVE_THRESHOLD = 6

# entry drop chance multiplier per difficulty tier
DIFFICULTY_CHANCE_BONUS = 0.20

# Special/Exotic parts may only exist at or above this rarity
SUBTYPE_RARITY_FLOOR = RarityTier.rare

# special effects are expected from this rarity up (warning only)
SPECIAL_EFFECT_RARITY_FLOOR = RarityTier.rare

# unique composites must be at least this rare
UNIQUE_MINIMUM_RARITY = RarityTier.legendary

# length of the rng-derived suffix on generated item ids
GENERATED_ID_HEX_DIGITS = 8
