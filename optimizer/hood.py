"""
The neighbourhood of one location in the parameter space.

A Hood holds a bounded stack of fresh (non-tabu) candidate points drawn around
its centre, using one Distribution per parameter. Every point it yields is
recorded in the trajectory's TabuSet, which is shared by reference with the
SearchThread that owns the Hood.
"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from optimizer.distribution import Distribution
from optimizer.errors import InvalidArgumentError
from optimizer.points import (
    ParameterPoint,
    Ranges,
    ScoredPoint,
    TabuSet,
    check_in_range,
    domain_size,
    iter_points,
    random_point,
)

logger = logging.getLogger(__name__)

# Domains up to this many points are enumerated when random scattering is needed
ENUMERATION_LIMIT = 100_000


class Hood:
    def __init__(
        self,
        centre: ScoredPoint,
        ranges: Ranges,
        size: int,
        sd: float,
        increment: float,
        tabu: TabuSet,
        give_up: int = 10,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        if centre.parameters is None:
            raise InvalidArgumentError("hood centre has no parameters")
        check_in_range(centre.parameters, ranges)

        self.ranges = ranges
        self.centre = centre.copy()
        self.size = size
        self.sd = sd
        self.give_up = give_up
        self.tabu = tabu
        self.rng = rng if rng is not None else np.random.default_rng()
        self.neighbours: list[ParameterPoint] = []
        self.best = ScoredPoint()
        self._domain_size = domain_size(ranges)

        # An unscored centre counts as visited so it is never offered as a neighbour
        if not self.centre.is_scored:
            self.tabu.add(self.centre.parameters)

        self.distributions = {
            name: Distribution(
                self.centre.parameters.get(name), values, increment, sd, rng=self.rng
            )
            for name, values in ranges.items()
        }
        self.populate()

    # ------------------------------------------------------------------
    # Neighbour generation
    # ------------------------------------------------------------------

    def is_tabu(self, point: ParameterPoint) -> bool:
        return point in self.tabu

    def domain_exhausted(self) -> bool:
        return len(self.tabu) >= self._domain_size

    def _draw(self) -> ParameterPoint:
        return {name: dist.draw() for name, dist in self.distributions.items()}

    def _accept(self, point: ParameterPoint) -> None:
        self.tabu.add(point)
        self.neighbours.append(point)

    def generate_neighbour(self) -> bool:
        """
        Draw one fresh neighbour and push it onto the stack.

        After `give_up` tabu draws every Distribution is loosened by one step
        per further attempt. The attempt counter is not reset, so loosening
        continues until a fresh point turns up or no Distribution can widen
        any further, in which case the slot is abandoned and False returned.
        """
        if self.domain_exhausted():
            return False
        attempts = 0
        can_loosen = True
        while True:
            if attempts >= self.give_up:
                loosened = [dist.loosen() for dist in self.distributions.values()]
                can_loosen = any(loosened)
            candidate = self._draw()
            attempts += 1
            if not self.is_tabu(candidate):
                self._accept(candidate)
                return True
            if not can_loosen:
                return False

    def populate(self) -> int:
        """Fill the stack up to `size` neighbours. Returns the number of failed slots."""
        fails = 0
        for _ in range(self.size - len(self.neighbours)):
            if not self.generate_neighbour():
                fails += 1
        if fails > 0:
            logger.warning(
                "Could only generate %d of %d neighbours around %s (%d tabu points)",
                self.size - fails, self.size, self.centre.parameters, len(self.tabu),
            )
        return fails

    def scatter(self) -> int:
        """
        Fill the stack with uniformly random fresh points, ignoring the
        Distributions. Used once the probabilistic neighbourhood has dried up.
        Small domains are enumerated so that any point still unvisited can be
        found. Returns the number of failed slots.
        """
        wanted = self.size - len(self.neighbours)
        if self._domain_size <= ENUMERATION_LIMIT:
            fresh = [p for p in iter_points(self.ranges) if not self.is_tabu(p)]
            picks = self.rng.permutation(len(fresh))[:wanted]
            for i in picks:
                self._accept(fresh[i])
            return wanted - len(picks)

        fails = 0
        for _ in range(wanted):
            if not self._scatter_one():
                fails += 1
        return fails

    def _scatter_one(self) -> bool:
        for _ in range(self.give_up * self.size):
            if self.domain_exhausted():
                return False
            candidate = random_point(self.ranges, self.rng)
            if not self.is_tabu(candidate):
                self._accept(candidate)
                return True
        return False

    # ------------------------------------------------------------------
    # Centre / best bookkeeping
    # ------------------------------------------------------------------

    def update_best(self, candidate: ScoredPoint) -> bool:
        """
        Record a scored point; return True if it becomes the hood's best.

        The first score reported for an unscored centre always counts as an
        improvement and also fills in the centre's score. Any other point must
        beat both the current best and the centre.
        """
        check_in_range(candidate.parameters, self.ranges)

        if candidate.parameters == self.centre.parameters and not self.centre.is_scored:
            self.best = candidate.copy()
            self.centre.score = candidate.score
            return True

        if self.centre.is_scored and not candidate.score > self.centre.score:
            return False
        if self.best.is_scored and not candidate.score > self.best.score:
            return False
        self.best = candidate.copy()
        return True

    def set_new_centre(self, centre: ScoredPoint) -> None:
        """Move the hood. Each Distribution is re-centred and keeps its current sd."""
        if centre.parameters is None or centre.score is None:
            raise InvalidArgumentError(f"centre has wrong parameters: {centre}")
        self.centre = centre.copy()
        for name, dist in self.distributions.items():
            dist.update(self.centre.parameters[name], dist.sd)
        logger.debug("Hood re-centred on %s (score %s)", self.centre.parameters, self.centre.score)

    def tighten(self, factor: float = 1) -> None:
        for dist in self.distributions.values():
            dist.tighten(factor)

    def loosen(self, factor: float = 1) -> None:
        for dist in self.distributions.values():
            dist.loosen(factor)

    # ------------------------------------------------------------------
    # Stack access
    # ------------------------------------------------------------------

    def next(self) -> Optional[ParameterPoint]:
        """Pop the most recently generated neighbour."""
        if not self.neighbours:
            return None
        return self.neighbours.pop()

    def last(self) -> bool:
        """True when no neighbours are left in this round."""
        return not self.neighbours
