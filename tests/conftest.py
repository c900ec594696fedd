"""
Shared pytest fixtures: small parameter ranges and seeded random generators.
All randomness is seeded so every test is deterministic.
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.dirname(__file__))

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from objectives import MULTIMODAL_SPACE, QUADRATIC_SPACE
from tune.search_space import build_ranges

# ---------------------------------------------------------------------------
# Ranges
# ---------------------------------------------------------------------------

@pytest.fixture
def even_range():
    """Eleven even numbers 0..20; index 5 holds the value 10."""
    return tuple(range(0, 21, 2))


@pytest.fixture
def small_ranges():
    """Two parameters: a has 7 values (7..13), b has 6 values (50..300)."""
    return {
        "a": tuple(range(7, 14)),
        "b": tuple(range(50, 301, 50)),
    }


@pytest.fixture
def tiny_ranges():
    """A 2 x 2 domain that a single thread exhausts quickly."""
    return {"a": (0, 1), "b": ("x", "y")}


@pytest.fixture
def quadratic_ranges():
    return build_ranges(QUADRATIC_SPACE)


@pytest.fixture
def multimodal_ranges():
    return build_ranges(MULTIMODAL_SPACE)


# ---------------------------------------------------------------------------
# Randomness
# ---------------------------------------------------------------------------

@pytest.fixture
def rng():
    return np.random.default_rng(12345)
