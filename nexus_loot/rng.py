import random
from typing import Optional


def get_rng(seed: Optional[int] = None) -> random.Random:
    """
    Fresh generator for one request or one roll.

    Same seed always produces the same drop order. Never share the
    returned instance between threads.
    """
    return random.Random(seed)


def derive_rng(rng: random.Random) -> random.Random:
    """Independent child generator seeded from `rng`, for batch workers."""
    return random.Random(rng.getrandbits(64))
