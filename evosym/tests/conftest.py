"""Shared fixtures for the evosym test suite."""

import numpy as np
import pytest

from evosym.bootstrap import NEUTRAL_SENSOR_VALUE, SENSOR_COUNT, SENSOR_PREDATOR_DISTANCE
from evosym.genetics import Genetics
from evosym.rng import make_rng
from evosym.world import World


@pytest.fixture
def rng():
    return make_rng(42)


@pytest.fixture
def genetics():
    return Genetics()


@pytest.fixture
def empty_world(rng):
    """World with no food, obstacles or creatures."""
    return World(rng=rng, populate=False)


@pytest.fixture
def sensors():
    """
    Build a neutral sensor vector with overrides.

    Unless overridden, the predator sensor reads 1.0 (nothing seen).
    """
    def _make(overrides=None):
        values = np.full(SENSOR_COUNT, NEUTRAL_SENSOR_VALUE)
        values[SENSOR_PREDATOR_DISTANCE] = 1.0
        for index, value in (overrides or {}).items():
            values[index] = value
        return values
    return _make
