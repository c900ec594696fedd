"""
One independent search trajectory.

A SearchThread owns a Hood and the TabuSet it shares with that Hood, hands out
one candidate at a time and takes back its score. The hand-out/score protocol
is an explicit state machine:

    AWAITING_SCORE  --add_result-->     READY_FOR_NEXT
    READY_FOR_NEXT  --next_candidate--> AWAITING_SCORE
    (any)           --no candidate-->   EXHAUSTED

A fresh thread starts in AWAITING_SCORE with its start point as the candidate.
"""
from __future__ import annotations

import logging
from collections import deque
from enum import Enum, auto
from typing import Callable, Mapping, Optional

import numpy as np

from config import NeighbourhoodConfig
from optimizer.convergence import trend_slope
from optimizer.errors import MismatchedParametersError
from optimizer.hood import Hood
from optimizer.points import ParameterPoint, Ranges, ScoredPoint, TabuSet

logger = logging.getLogger(__name__)


class ThreadState(Enum):
    AWAITING_SCORE = auto()
    READY_FOR_NEXT = auto()
    EXHAUSTED = auto()


class SearchThread:
    def __init__(
        self,
        ranges: Ranges,
        start: Mapping[str, int],
        config: Optional[NeighbourhoodConfig] = None,
        window: int = 10,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        if config is None:
            config = NeighbourhoodConfig()
        self.ranges = ranges
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng()

        self.tabu = TabuSet()
        self.best = ScoredPoint()
        self.best_history: list[ScoredPoint] = []
        # Newest score first; the oldest falls off once the window is full
        self.recent_scores: deque[float] = deque(maxlen=window)
        self.iterations = 0
        self.iterations_since_best = 0

        self.current = ScoredPoint(parameters=dict(start))
        self.state = ThreadState.AWAITING_SCORE
        self.hood = Hood(
            ScoredPoint(parameters=dict(start)),
            ranges,
            size=config.hood_size,
            sd=config.starting_sd,
            increment=config.sd_increment_proportion,
            tabu=self.tabu,
            give_up=config.give_up,
            rng=self.rng,
        )

    @property
    def exhausted(self) -> bool:
        return self.state is ThreadState.EXHAUSTED

    @property
    def window_full(self) -> bool:
        return len(self.recent_scores) == self.recent_scores.maxlen

    def next_candidate(self) -> Optional[ParameterPoint]:
        """
        Pop the next neighbour to evaluate, regenerating the Hood first if it
        is empty. Returns None once no fresh point can be produced.
        """
        if self.exhausted:
            return None
        if self.hood.last():
            self._refresh_hood()
            if self.hood.last():
                self.hood.scatter()
            if self.hood.last():
                logger.warning(
                    "Search thread exhausted after %d iterations (%d points visited)",
                    self.iterations, len(self.tabu),
                )
                self.state = ThreadState.EXHAUSTED
                return None
        self.current = ScoredPoint(parameters=self.hood.next())
        self.state = ThreadState.AWAITING_SCORE
        return dict(self.current.parameters)

    def _refresh_hood(self) -> None:
        centre = self.hood.centre
        if self.best.is_scored and (not centre.is_scored or self.best.score > centre.score):
            self.hood.set_new_centre(self.best)
        self.hood.populate()

    def add_result(self, params: Mapping[str, int], score: float) -> bool:
        """
        Record the score of the candidate in flight. Returns True if it became
        this thread's new best.
        """
        if self.state is not ThreadState.AWAITING_SCORE or dict(params) != self.current.parameters:
            raise MismatchedParametersError(
                f"parameters aren't what was expected\n"
                f"params={dict(params)}\ncurrent={self.current.parameters}"
            )
        self.current.score = score
        self.state = ThreadState.READY_FOR_NEXT
        self.iterations += 1
        self.recent_scores.appendleft(score)

        if self.hood.update_best(self.current):
            self.best = self.current.copy()
            self.best_history.append(self.best)
            self.iterations_since_best = 0
            return True
        self.iterations_since_best += 1
        return False


class AdaptiveSearchThread(SearchThread):
    """
    Trajectory that reacts to each exhausted Hood.

    If the search has stalled for long enough it backtracks: the Hood snaps
    back to the best point known and every Distribution is tightened.
    Otherwise it moves to the best neighbour of the round just finished (even
    if that is worse than the centre) and tightens on a rising score trend or
    loosens on a falling one.
    """

    def __init__(
        self,
        ranges: Ranges,
        start: Mapping[str, int],
        config: Optional[NeighbourhoodConfig] = None,
        window: int = 10,
        rng: Optional[np.random.Generator] = None,
        backtrack_cutoff: float = 2.0,
        backtrack_to: Optional[Callable[[], ScoredPoint]] = None,
    ) -> None:
        super().__init__(ranges, start, config=config, window=window, rng=rng)
        self.backtrack_cutoff = backtrack_cutoff
        self.backtrack_to = backtrack_to
        self.backtrack_count = 1
        self.round_best = ScoredPoint()

    def add_result(self, params, score):
        improved = super().add_result(params, score)
        if not self.round_best.is_scored or score > self.round_best.score:
            self.round_best = self.current.copy()
        return improved

    def should_backtrack(self) -> bool:
        stalled = self.iterations_since_best / self.backtrack_count
        return stalled >= self.backtrack_cutoff * self.hood.size

    def _refresh_hood(self) -> None:
        if self.should_backtrack():
            target = self.backtrack_to() if self.backtrack_to is not None else self.best
            if target.is_scored:
                logger.debug(
                    "Backtracking to %s (score %s) after %d iterations without improvement",
                    target.parameters, target.score, self.iterations_since_best,
                )
                self.hood.set_new_centre(target)
                self.hood.tighten()
                self.backtrack_count += 1
        else:
            if self.round_best.is_scored:
                self.hood.set_new_centre(self.round_best)
            slope = trend_slope(self.recent_scores)
            if slope > 0:
                logger.debug("Scores rising (slope %.4g); tightening", slope)
                self.hood.tighten()
            elif slope < 0:
                logger.debug("Scores falling (slope %.4g); loosening", slope)
                self.hood.loosen()
        self.round_best = ScoredPoint()
        self.hood.populate()
