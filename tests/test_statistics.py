import math
import random
from collections import Counter

from nexus_loot.rarity import RarityDistribution, RarityTier
from nexus_loot.rarity_resolver import resolve

ROLLS = 100_000

DISTRIBUTION = RarityDistribution(
    common=0.60,
    uncommon=0.25,
    rare=0.10,
    epic=0.04,
    legendary=0.009,
    pearlescent=0.0009,
    apocalypse=0.0001,
)

# fixed seed, so the band is a tight regression guard on resolve()
SIGMAS = 2.0


def test_observed_tier_frequencies_match_binomial_expectation():
    rng = random.Random(20240611)
    counts = Counter(
        resolve(DISTRIBUTION, RarityTier.common, RarityTier.apocalypse, rng) for _ in range(ROLLS)
    )
    total = DISTRIBUTION.total

    for tier in RarityTier:
        p = DISTRIBUTION.weight_for(tier) / total
        expected = ROLLS * p
        sigma = math.sqrt(ROLLS * p * (1 - p))
        assert abs(counts[tier] - expected) <= SIGMAS * sigma, (tier.name, counts[tier], expected)
