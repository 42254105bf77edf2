from random import Random
from typing import Callable, Iterable, Sequence, Tuple, TypeVar

from nexus_loot.errors import ConfigurationError, EmptyPoolError

T = TypeVar("T")


def weighted_pick(pairs: Sequence[Tuple[T, float]], rng: Random) -> T:
    """
    Pick one candidate with probability weight / total weight.

    Single cumulative pass: the first candidate whose running total
    reaches the roll wins, so list order breaks ties. When every weight
    is zero the pick is uniform.
    """
    if not pairs:
        raise EmptyPoolError("Loot pool is empty")

    total = 0.0
    for candidate, weight in pairs:
        if weight < 0:
            raise ConfigurationError(f"Negative weight {weight} for candidate {candidate!r}")
        total += weight

    if total <= 0:
        return rng.choice(pairs)[0]

    roll = rng.uniform(0, total)
    cumulative = 0.0
    for candidate, weight in pairs:
        cumulative += weight
        if cumulative >= roll:
            return candidate

    # float residue: roll landed a hair above the summed total
    for candidate, weight in reversed(pairs):
        if weight > 0:
            return candidate


def weighted_pick_by(items: Iterable[T], weight: Callable[[T], float], rng: Random) -> T:
    return weighted_pick([(item, weight(item)) for item in items], rng)
