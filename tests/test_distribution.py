"""
Unit tests for optimizer/distribution.py.
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import numpy as np
import pytest

from optimizer.distribution import Distribution, reflect_index
from optimizer.errors import InvalidArgumentError


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestConstruction:
    def test_create_distribution(self, even_range, rng):
        d = Distribution(5, even_range, 0.1, 1, rng=rng)
        assert d.mean == 5
        assert round(d.maxsd, 5) == 7.26
        assert d.minsd == 0.5
        assert d.sd == 1

    def test_sd_above_max_is_limited(self, even_range, rng):
        d = Distribution(5, even_range, 0.1, 100, rng=rng)
        assert d.sd == d.maxsd

    def test_sd_below_min_is_limited(self, even_range, rng):
        d = Distribution(5, even_range, 0.1, 0.01, rng=rng)
        assert d.sd == d.minsd

    def test_missing_mean_raises(self, even_range):
        with pytest.raises(InvalidArgumentError):
            Distribution(None, even_range, 0.1, 1)

    def test_missing_sd_raises(self, even_range):
        with pytest.raises(InvalidArgumentError):
            Distribution(5, even_range, 0.1, None)

    def test_empty_range_raises(self):
        with pytest.raises(InvalidArgumentError):
            Distribution(0, (), 0.1, 1)

    def test_update_replaces_mean_and_sd(self, even_range, rng):
        d = Distribution(5, even_range, 0.1, 1, rng=rng)
        d.update(2, 3)
        assert d.mean == 2
        assert d.sd == 3

    def test_update_with_missing_values_raises(self, even_range, rng):
        d = Distribution(5, even_range, 0.1, 1, rng=rng)
        with pytest.raises(InvalidArgumentError):
            d.update(None, 1)


# ---------------------------------------------------------------------------
# Loosen / tighten
# ---------------------------------------------------------------------------

class TestSpread:
    def test_loosen_increases_sd_by_one_step(self, even_range, rng):
        d = Distribution(5, even_range, 0.1, 1, rng=rng)
        assert d.loosen() is True
        assert d.sd == pytest.approx(2.1)

    def test_loosen_with_factor(self, even_range, rng):
        d = Distribution(5, even_range, 0.1, 1, rng=rng)
        d.loosen(factor=2)
        assert d.sd == pytest.approx(3.2)

    def test_loosen_at_max_reports_false(self, even_range, rng):
        d = Distribution(5, even_range, 0.1, 100, rng=rng)
        assert d.loosen() is False
        assert d.sd == d.maxsd

    def test_tighten_to_minimum(self, even_range, rng):
        d = Distribution(5, even_range, 0.1, 1, rng=rng)
        assert d.tighten() is True
        assert d.sd == 0.5

    def test_tighten_not_yet_minimal(self, even_range, rng):
        d = Distribution(5, even_range, 0.1, 5, rng=rng)
        assert d.tighten() is False
        assert d.sd == pytest.approx(3.9)

    def test_set_sd_to_min_and_max(self, even_range, rng):
        d = Distribution(5, even_range, 0.1, 1, rng=rng)
        d.set_sd_to_min()
        assert d.sd == d.minsd
        d.set_sd_to_max()
        assert d.sd == d.maxsd

    def test_sd_stays_bounded_under_any_sequence(self, even_range, rng):
        d = Distribution(5, even_range, 0.1, 1, rng=rng)
        moves = np.random.default_rng(7).integers(0, 2, size=200)
        for move in moves:
            if move:
                d.loosen(factor=3)
            else:
                d.tighten(factor=2)
            assert d.minsd <= d.sd <= d.maxsd


# ---------------------------------------------------------------------------
# Drawing
# ---------------------------------------------------------------------------

class TestDraw:
    def test_draws_are_valid_indices(self, even_range, rng):
        d = Distribution(5, even_range, 0.1, 1, rng=rng)
        for _ in range(1000):
            v = d.draw()
            assert 0 <= v < len(even_range)

    def test_draws_centre_on_mean(self, even_range, rng):
        d = Distribution(5, even_range, 0.1, 1, rng=rng)
        draws = np.array([d.draw() for _ in range(2000)])
        assert round(draws.mean()) == 5
        assert round(draws.std()) == 1

    def test_wide_distribution_near_edge_stays_in_range(self, rng):
        values = tuple(range(3))
        d = Distribution(0, values, 0.1, 100, rng=rng)
        for _ in range(1000):
            assert 0 <= d.draw() < 3

    def test_single_value_range_always_draws_zero(self, rng):
        d = Distribution(0, ("only",), 0.1, 1, rng=rng)
        assert {d.draw() for _ in range(100)} == {0}


class TestReflectIndex:
    @pytest.mark.parametrize("r, expected", [
        (0, 0), (10, 10), (-1, 1), (-3, 3), (11, 10), (12, 9), (21, 0), (-11, 10),
    ])
    def test_reflection_matches_repeated_mirroring(self, r, expected):
        assert reflect_index(r, 11) == expected

    def test_matches_iterative_fold_for_many_values(self):
        size = 7
        for r in range(-100, 100):
            folded = r
            while folded < 0 or folded >= size:
                if folded < 0:
                    folded = -folded
                else:
                    folded = 2 * size - 1 - folded
            assert reflect_index(r, size) == folded
