"""
Random Source Helpers

Every stochastic call in the engine takes an explicit numpy Generator so
runs can be replayed from a seed. Nothing here touches the global
numpy.random state.
"""

from typing import Optional, Union

import numpy as np


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Create a generator, seeded when a seed is given."""
    return np.random.default_rng(seed)


def ensure_rng(rng: Optional[Union[np.random.Generator, int]] = None) -> np.random.Generator:
    """
    Normalize an optional rng argument.

    Args:
        rng: An existing Generator, an integer seed, or None

    Returns:
        The Generator itself, a seeded one, or a fresh unseeded one
    """
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)
