from typing import Dict, Iterable, List, NamedTuple, Tuple

from pydantic import BaseModel, ConfigDict, Field

from nexus_loot.enums import NamedIntEnum


# -----------------------------
# RARITY TIERS
# -----------------------------

class RarityTier(NamedIntEnum):
    common = 1
    uncommon = 2
    rare = 3
    epic = 4
    legendary = 5
    pearlescent = 6
    apocalypse = 7

    @property
    def is_lowest(self) -> bool:
        return self is RarityTier.common

    def step_down(self) -> "RarityTier":
        if self.is_lowest:
            return self
        return RarityTier(self - 1)


# highest first, the order rarity bands are checked in
TIERS_DESCENDING: Tuple[RarityTier, ...] = tuple(sorted(RarityTier, reverse=True))


class RarityTierInfo(NamedTuple):
    weight: float
    stat_min: float
    stat_max: float


RARITY_TABLE: Dict[RarityTier, RarityTierInfo] = {
    RarityTier.common: RarityTierInfo(0.60, 0.00, 0.00),
    RarityTier.uncommon: RarityTierInfo(0.25, 0.05, 0.10),
    RarityTier.rare: RarityTierInfo(0.10, 0.10, 0.20),
    RarityTier.epic: RarityTierInfo(0.04, 0.20, 0.35),
    RarityTier.legendary: RarityTierInfo(0.009, 0.35, 0.50),
    RarityTier.pearlescent: RarityTierInfo(0.0009, 0.50, 0.75),
    RarityTier.apocalypse: RarityTierInfo(0.0001, 0.75, 1.00),
}


def stat_improvement_range(tier: RarityTier) -> Tuple[float, float]:
    info = RARITY_TABLE[tier]
    return info.stat_min, info.stat_max


# lower edge of each band, checked top down; anything below 1.6 is common
EFFECTIVE_RARITY_BANDS: Tuple[Tuple[float, RarityTier], ...] = (
    (6.6, RarityTier.apocalypse),
    (5.6, RarityTier.pearlescent),
    (4.6, RarityTier.legendary),
    (3.6, RarityTier.epic),
    (2.6, RarityTier.rare),
    (1.6, RarityTier.uncommon),
)


def effective_rarity(mean_rarity: float) -> RarityTier:
    """
    Band a mean part rarity into a single tier.

    Each band includes its lower edge, so a mean that lands in the gap
    between two bands (1.55, 2.5, ...) belongs to the lower band.
    """
    for lower_edge, tier in EFFECTIVE_RARITY_BANDS:
        if mean_rarity >= lower_edge:
            return tier
    return RarityTier.common


# -----------------------------
# DISTRIBUTIONS
# -----------------------------

class RarityWeightOverride(BaseModel):
    model_config = ConfigDict(frozen=True)

    rarity: RarityTier
    weight: float = Field(ge=0.0)


class RarityDistribution(BaseModel):
    """Probability weight per rarity tier. Defaults are the global drop rates."""

    model_config = ConfigDict(frozen=True)

    common: float = Field(default=RARITY_TABLE[RarityTier.common].weight, ge=0.0)
    uncommon: float = Field(default=RARITY_TABLE[RarityTier.uncommon].weight, ge=0.0)
    rare: float = Field(default=RARITY_TABLE[RarityTier.rare].weight, ge=0.0)
    epic: float = Field(default=RARITY_TABLE[RarityTier.epic].weight, ge=0.0)
    legendary: float = Field(default=RARITY_TABLE[RarityTier.legendary].weight, ge=0.0)
    pearlescent: float = Field(default=RARITY_TABLE[RarityTier.pearlescent].weight, ge=0.0)
    apocalypse: float = Field(default=RARITY_TABLE[RarityTier.apocalypse].weight, ge=0.0)

    def weight_for(self, tier: RarityTier) -> float:
        return getattr(self, tier.name)

    @property
    def total(self) -> float:
        return sum(self.weight_for(t) for t in RarityTier)

    def as_dict(self) -> Dict[RarityTier, float]:
        return {t: self.weight_for(t) for t in RarityTier}

    def normalized(self) -> "RarityDistribution":
        total = self.total
        if total <= 0:
            return self
        return RarityDistribution(**{t.name: self.weight_for(t) / total for t in RarityTier})

    def boosted(self, factor: float) -> "RarityDistribution":
        """Scale every tier above common by `factor`, then renormalize."""
        if factor == 1.0:
            return self
        weights = {
            t.name: self.weight_for(t) * (1.0 if t.is_lowest else factor)
            for t in RarityTier
        }
        return RarityDistribution(**weights).normalized()

    @classmethod
    def from_overrides(cls, overrides: Iterable[RarityWeightOverride]) -> "RarityDistribution":
        weights = {t.name: 0.0 for t in RarityTier}
        for override in overrides:
            weights[override.rarity.name] += override.weight
        return cls(**weights)


DEFAULT_DISTRIBUTION = RarityDistribution()


def tiers_between(low: RarityTier, high: RarityTier) -> List[RarityTier]:
    return [t for t in RarityTier if low <= t <= high]
