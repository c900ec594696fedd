"""
Per-parameter sampling model.

A Distribution is a normal distribution over the index space of one
ParameterRange. The set of Distributions held by a Hood acts as a
probabilistic neighbourhood structure: the mean sits on the centre's index and
the sd controls how far neighbours stray from it.
"""
from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from optimizer.errors import InvalidArgumentError

MIN_SD = 0.5
MAX_SD_PROPORTION = 0.66


class Distribution:
    def __init__(
        self,
        mean: Optional[float],
        values: Sequence,
        sd_increment_proportion: float,
        sd: Optional[float],
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        if mean is None or sd is None:
            raise InvalidArgumentError(
                f"generation of distribution with mean: {mean}, sd: {sd} failed."
            )
        if len(values) == 0:
            raise InvalidArgumentError("cannot build a distribution over an empty range")
        self.size = len(values)
        self.maxsd = self.size * MAX_SD_PROPORTION
        self.minsd = MIN_SD
        self.sd_increment_proportion = sd_increment_proportion
        self.rng = rng if rng is not None else np.random.default_rng()
        self.mean = mean
        self.sd = sd
        self._limit_sd()

    def _limit_sd(self) -> None:
        self.sd = min(self.sd, self.maxsd)
        self.sd = max(self.sd, self.minsd)

    @property
    def step(self) -> float:
        return self.sd_increment_proportion * self.size

    def update(self, mean: Optional[float], sd: Optional[float]) -> None:
        if mean is None or sd is None:
            raise InvalidArgumentError(
                f"generation of distribution with mean: {mean}, sd: {sd} failed."
            )
        self.mean = mean
        self.sd = sd
        self._limit_sd()

    def loosen(self, factor: float = 1) -> bool:
        """
        Widen the distribution by one step.

        Returns False if the sd was already at its maximum, i.e. the
        distribution cannot be made any looser.
        """
        could_loosen = self.sd < self.maxsd
        self.sd += self.step * factor
        self._limit_sd()
        return could_loosen

    def tighten(self, factor: float = 1) -> bool:
        """Narrow the distribution by one step. Returns True once the sd is at its minimum."""
        if self.sd > 0.01:
            self.sd -= self.step * factor
        self._limit_sd()
        return self.sd == self.minsd

    def set_sd_to_min(self) -> None:
        self.sd = self.minsd

    def set_sd_to_max(self) -> None:
        self.sd = self.maxsd

    def draw(self) -> int:
        """Sample an index, folding overshoots back into [0, size) by reflection."""
        r = int(round(self.rng.normal(self.mean, self.sd)))
        return reflect_index(r, self.size)


def reflect_index(r: int, size: int) -> int:
    """
    Fold an integer into [0, size).

    Negative values mirror about 0 and values >= size mirror about size - 0.5.
    Alternating the two mirrors is a translation by 2 * size - 1, so the fold
    reduces to a single modulo.
    """
    period = 2 * size - 1
    if period <= 1:
        return 0
    m = r % period
    if m >= size:
        m = period - m
    return m
