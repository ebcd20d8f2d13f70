"""Random draws shared by every randomized mission field.

All helpers take the run-scoped ``random.Random`` explicitly so a whole
repack can be reproduced from a single seed.
"""
from __future__ import annotations

import random
from typing import Optional, Sequence, TypeVar, Union

from miz_repacker.errors import ConfigError

Number = TypeVar("Number", int, float)


def draw(
    low: Optional[Number],
    high: Optional[Number],
    rng: random.Random,
    name: str = "value",
) -> Optional[Number]:
    """Pick a value from an optional ``[low, high]`` range.

    - Neither bound set: ``None`` (the field is left alone).
    - One bound set: that bound, used as a fixed value.
    - Both set: a uniform draw, inclusive of both ends. Two ints give an int.

    Raises:
        ConfigError: If ``low`` is greater than ``high``.
    """
    if low is None and high is None:
        return None
    if low is None:
        return high
    if high is None:
        return low
    if low > high:
        raise ConfigError(f"{name}_min ({low}) is greater than {name}_max ({high})")
    if isinstance(low, int) and isinstance(high, int):
        return rng.randint(low, high)
    return rng.uniform(low, high)


def roll(chance: float, rng: random.Random) -> bool:
    """Bernoulli trial: True with probability ``chance``."""
    return rng.random() < chance


def choose_weighted(
    names: Sequence[str],
    weights: Sequence[Union[int, float]],
    rng: random.Random,
) -> str:
    """Pick one of ``names`` with probability proportional to its weight."""
    if not names:
        raise ConfigError("Cannot choose from an empty list")
    if len(names) != len(weights):
        raise ConfigError("Every choice needs exactly one weight")
    if any(w <= 0 for w in weights):
        raise ConfigError("Weights must be greater than zero")
    return rng.choices(list(names), weights=list(weights), k=1)[0]
