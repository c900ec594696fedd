"""
Unit tests for optimizer/convergence.py.
"""

import math
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from optimizer.convergence import (
    LeveneComparison,
    MannWhitneyComparison,
    SampleComparison,
    converged_fraction,
    pair_converged,
    trend_slope,
)


class FixedComparison(SampleComparison):
    """Returns the same p-value for every pair."""

    name = "fixed"

    def __init__(self, p):
        self.p = p
        self.calls = 0

    def p_value(self, a, b):
        self.calls += 1
        return self.p


LOW = [1.0, 2.0, 1.5, 2.5, 1.2, 1.8, 2.2, 1.1, 1.9, 2.1]
HIGH = [100.0, 160.0, 40.0, 190.0, 10.0, 130.0, 70.0, 180.0, 20.0, 110.0]


# ---------------------------------------------------------------------------
# Sample comparisons
# ---------------------------------------------------------------------------

class TestComparisons:
    def test_mann_whitney_separates_shifted_samples(self):
        assert MannWhitneyComparison().p_value(LOW, HIGH) < 0.001

    def test_mann_whitney_same_sample_is_not_significant(self):
        assert MannWhitneyComparison().p_value(LOW, list(LOW)) > 0.5

    def test_levene_detects_unequal_spread(self):
        assert LeveneComparison().p_value(LOW, HIGH) < 0.01

    def test_levene_same_sample_is_not_significant(self):
        assert LeveneComparison().p_value(LOW, list(LOW)) > 0.5

    def test_comparisons_are_named(self):
        assert MannWhitneyComparison().name == "mann-whitney"
        assert LeveneComparison().name == "levene"


# ---------------------------------------------------------------------------
# Pairwise decision
# ---------------------------------------------------------------------------

class TestPairConverged:
    def test_both_tests_below_their_levels(self):
        assert pair_converged(LOW, HIGH, FixedComparison(0.01), FixedComparison(0.04), 0.05, 0.05)

    def test_location_level_is_inclusive(self):
        assert pair_converged(LOW, HIGH, FixedComparison(0.05), FixedComparison(0.0), 0.05, 0.05)

    def test_location_above_level_fails(self):
        assert not pair_converged(LOW, HIGH, FixedComparison(0.06), FixedComparison(0.0), 0.05, 0.05)

    def test_spread_above_level_fails(self):
        assert not pair_converged(LOW, HIGH, FixedComparison(0.0), FixedComparison(0.2), 0.05, 0.05)

    def test_nan_p_value_never_counts(self):
        assert not pair_converged(LOW, HIGH, FixedComparison(0.0), FixedComparison(math.nan), 0.05, 0.05)

    def test_with_real_tests(self):
        assert pair_converged(LOW, HIGH, MannWhitneyComparison(), LeveneComparison(), 0.05 / 2, 0.05)
        assert not pair_converged(LOW, list(LOW), MannWhitneyComparison(), LeveneComparison(), 0.05, 0.05)


class TestConvergedFraction:
    def test_no_pairs_gives_zero(self):
        assert converged_fraction([LOW], FixedComparison(0.0), FixedComparison(0.0), 0.05, 0.05) == 0.0

    def test_every_pair_is_compared(self):
        location = FixedComparison(0.0)
        windows = [LOW, HIGH, LOW, HIGH]
        fraction = converged_fraction(windows, location, FixedComparison(0.0), 0.05, 0.05)
        assert fraction == 1.0
        assert location.calls == 6

    def test_mixed_pairs(self):
        # LOW vs LOW is not significant, the two LOW vs HIGH pairs are
        windows = [LOW, list(LOW), HIGH]
        fraction = converged_fraction(windows, MannWhitneyComparison(), LeveneComparison(), 0.05 / 3, 0.05)
        assert fraction == pytest.approx(2 / 3)

    def test_bonferroni_level_is_respected(self):
        windows = [LOW, HIGH, LOW]
        strict = converged_fraction(windows, FixedComparison(0.02), FixedComparison(0.0), 0.05 / 3, 0.05)
        loose = converged_fraction(windows, FixedComparison(0.02), FixedComparison(0.0), 0.05, 0.05)
        assert strict == 0.0
        assert loose == 1.0


# ---------------------------------------------------------------------------
# Trend
# ---------------------------------------------------------------------------

class TestTrendSlope:
    def test_rising_scores_give_positive_slope(self):
        # newest first: the latest score is the largest
        assert trend_slope([5.0, 4.0, 3.0, 2.0, 1.0]) == pytest.approx(1.0)

    def test_falling_scores_give_negative_slope(self):
        assert trend_slope([1.0, 3.0, 5.0, 7.0]) == pytest.approx(-2.0)

    def test_flat_scores_give_zero(self):
        assert trend_slope([2.0, 2.0, 2.0, 2.0]) == pytest.approx(0.0)

    def test_too_few_points_give_zero(self):
        assert trend_slope([]) == 0.0
        assert trend_slope([3.0, 1.0]) == 0.0

    def test_non_finite_scores_are_ignored(self):
        assert trend_slope([4.0, -math.inf, 2.0, 1.0, math.nan]) > 0
        assert trend_slope([-math.inf, 1.0, math.nan, 2.0]) == 0.0

    def test_accepts_a_deque(self):
        from collections import deque

        window = deque(maxlen=4)
        for score in [1.0, 2.0, 3.0, 4.0, 5.0]:
            window.appendleft(score)
        assert trend_slope(window) == pytest.approx(1.0)
