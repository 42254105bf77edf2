import random
from collections import Counter

import pytest

from nexus_loot.errors import ConfigurationError, EmptyPoolError
from nexus_loot.sampler import weighted_pick, weighted_pick_by


class FixedRoll:
    """Random stand-in whose uniform() always lands on one value."""

    def __init__(self, value):
        self.value = value

    def uniform(self, a, b):
        return self.value


class TestWeightedPick:
    def test_empty_pool_raises(self, rng):
        with pytest.raises(EmptyPoolError):
            weighted_pick([], rng)

    def test_negative_weight_is_configuration_error(self, rng):
        with pytest.raises(ConfigurationError):
            weighted_pick([("a", 1.0), ("b", -0.5)], rng)

    def test_single_candidate(self, rng):
        assert weighted_pick([("only", 3.0)], rng) == "only"

    def test_all_zero_weights_fall_back_to_uniform(self, rng):
        seen = Counter(weighted_pick([("a", 0), ("b", 0), ("c", 0)], rng) for _ in range(600))
        assert set(seen) == {"a", "b", "c"}
        assert all(count > 120 for count in seen.values())

    def test_zero_weight_candidate_loses_to_positive(self, rng):
        picks = {weighted_pick([("never", 0.0), ("always", 1.0)], rng) for _ in range(200)}
        assert picks == {"always"}

    def test_frequencies_follow_weights(self):
        rng = random.Random(7)
        picks = Counter(weighted_pick([("a", 1.0), ("b", 3.0)], rng) for _ in range(20_000))
        assert picks["a"] / 20_000 == pytest.approx(0.25, abs=0.015)

    def test_tie_goes_to_first_in_list_order(self):
        # roll exactly on the boundary between a and b
        assert weighted_pick([("a", 1.0), ("b", 1.0)], FixedRoll(1.0)) == "a"
        assert weighted_pick([("b", 1.0), ("a", 1.0)], FixedRoll(1.0)) == "b"

    def test_roll_past_total_returns_last_weighted_candidate(self):
        assert weighted_pick([("a", 1.0), ("b", 1.0), ("c", 0.0)], FixedRoll(2.0000001)) == "b"

    def test_same_seed_same_sequence(self):
        pairs = [(name, w) for name, w in zip("abcdef", (5, 1, 3, 0.5, 2, 8))]
        first = [weighted_pick(pairs, random.Random(99)) for _ in range(5)]
        second = [weighted_pick(pairs, random.Random(99)) for _ in range(5)]
        assert first == second


def test_weighted_pick_by_uses_weight_function(rng):
    items = [{"id": "heavy", "w": 100.0}, {"id": "none", "w": 0.0}]
    assert weighted_pick_by(items, lambda i: i["w"], rng)["id"] == "heavy"
