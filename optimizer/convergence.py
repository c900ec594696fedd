"""
Statistics used to steer and stop the adaptive search.

Two-sample comparisons sit behind a single interface, `SampleComparison`,
so the convergence test in AdaptiveTabuSearch can swap the rank-sum or the
variance test for another without touching the orchestration code.
"""
from __future__ import annotations

import itertools
import logging
from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np
from scipy import stats
from sklearn.linear_model import LinearRegression

logger = logging.getLogger(__name__)


class SampleComparison(ABC):
    """Compare two score samples and return the p-value of the test."""

    name = "comparison"

    @abstractmethod
    def p_value(self, a: Sequence[float], b: Sequence[float]) -> float:
        ...


class MannWhitneyComparison(SampleComparison):
    """Two-sided Mann–Whitney U rank-sum test on the score distributions."""

    name = "mann-whitney"

    def p_value(self, a, b):
        result = stats.mannwhitneyu(a, b, alternative="two-sided")
        return float(result.pvalue)


class LeveneComparison(SampleComparison):
    """Levene test for equality of variances."""

    name = "levene"

    def p_value(self, a, b):
        result = stats.levene(a, b)
        return float(result.pvalue)


def pair_converged(
    a: Sequence[float],
    b: Sequence[float],
    location_test: SampleComparison,
    spread_test: SampleComparison,
    location_level: float,
    spread_level: float,
) -> bool:
    """
    A pair of windows counts as converged when the location test p-value is
    at most `location_level` and the spread test p-value at most `spread_level`.
    NaN p-values (e.g. Levene on two constant samples) never count.
    """
    p_location = location_test.p_value(a, b)
    p_spread = spread_test.p_value(a, b)
    logger.debug(
        "%s p=%.4g, %s p=%.4g", location_test.name, p_location, spread_test.name, p_spread
    )
    return p_location <= location_level and p_spread <= spread_level


def converged_fraction(
    windows: Sequence[Sequence[float]],
    location_test: SampleComparison,
    spread_test: SampleComparison,
    location_level: float,
    spread_level: float,
) -> float:
    """Fraction of all pairwise window combinations that count as converged."""
    pairs = list(itertools.combinations(windows, 2))
    if not pairs:
        return 0.0
    converged = sum(
        pair_converged(a, b, location_test, spread_test, location_level, spread_level)
        for a, b in pairs
    )
    return converged / len(pairs)


def trend_slope(newest_first: Sequence[float]) -> float:
    """
    Slope of a least-squares line through a score window.

    The window is stored newest-first, so it is reversed to put time on the x
    axis. Non-finite scores (failed evaluations) are left out. Fewer than 3
    usable points carry no trend and give 0.0.
    """
    y = np.asarray(list(reversed(newest_first)), dtype=float)
    x = np.arange(len(y), dtype=float)
    finite = np.isfinite(y)
    if finite.sum() < 3:
        return 0.0
    model = LinearRegression().fit(x[finite].reshape(-1, 1), y[finite])
    return float(model.coef_[0])
