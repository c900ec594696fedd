"""
Tabu search over a discretised parameter space with costly objective evaluation.

The orchestrator never evaluates anything itself. The caller scores the
candidate it was handed and passes the score back through run_one_iteration,
which returns the next candidate. Results are delivered round-robin: each call
feeds the active thread, then moves the cursor to the next thread that can
produce a candidate.

Two operating modes:

  TabuSearch          independent trajectories; finished once every thread's
                      best score is identical.
  AdaptiveTabuSearch  trajectories that backtrack and adapt their sampling
                      spread from the score trend; finished by a pairwise
                      statistical comparison of the threads' recent scores.
"""
from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence, Union

import numpy as np

from config import TabuSearchConfig
from optimizer.convergence import (
    LeveneComparison,
    MannWhitneyComparison,
    SampleComparison,
    converged_fraction,
)
from optimizer.errors import InvalidArgumentError, TabuSearchError
from optimizer.points import (
    ParameterPoint,
    ScoredPoint,
    decode_point,
    normalize_ranges,
    random_point,
)
from optimizer.search_thread import AdaptiveSearchThread, SearchThread, ThreadState

logger = logging.getLogger(__name__)

StartSpec = Union[None, Mapping[str, int], Sequence[Mapping[str, int]]]


class TabuSearch:
    def __init__(self, ranges: Mapping[str, Sequence], config: Optional[TabuSearchConfig] = None) -> None:
        if config is None:
            config = TabuSearchConfig()
        if config.threads < 1:
            raise InvalidArgumentError(f"need at least one search thread, got {config.threads}")
        self.ranges = normalize_ranges(ranges)
        for name, values in self.ranges.items():
            if not values:
                raise InvalidArgumentError(f"range '{name}' is empty")

        self.config = config
        self.rng = np.random.default_rng(config.seed)
        self.threads: list[SearchThread] = []
        self.current_thread = 0
        self.total_iterations = 0
        self.history: list[dict] = []

    @property
    def num_threads(self) -> int:
        return self.config.threads

    # ------------------------------------------------------------------
    # Starting points
    # ------------------------------------------------------------------

    def knows_starting_point(self) -> bool:
        return True

    def select_starting_point(self) -> ParameterPoint:
        return self.random_start_point()

    def random_start_point(self) -> ParameterPoint:
        return random_point(self.ranges, self.rng)

    def setup(self, start: StartSpec = None) -> ParameterPoint:
        """
        Create the search threads and return the first candidate to evaluate.

        A single start point seeds the first thread and the rest start at
        random points. A sequence of start points seeds threads pairwise, with
        random points for any threads left over. None starts every thread at
        random.
        """
        if start is None:
            starts = []
        elif isinstance(start, Mapping):
            starts = [dict(start)]
        else:
            starts = [dict(s) for s in start][: self.num_threads]
        while len(starts) < self.num_threads:
            starts.append(self.random_start_point())

        self.threads = [self._make_thread(s) for s in starts]
        self.current_thread = 0
        self.total_iterations = 0
        self.history = []
        logger.debug("Set up %d search threads at %s", len(self.threads), starts)
        return self.current_candidate

    def _make_thread(self, start: ParameterPoint) -> SearchThread:
        return SearchThread(
            self.ranges,
            start,
            config=self.config.neighbourhood,
            window=self.config.convergence.window,
            rng=self.rng,
        )

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------

    @property
    def active_thread(self) -> SearchThread:
        if not self.threads:
            raise TabuSearchError("haven't made any threads yet")
        return self.threads[self.current_thread]

    @property
    def current_candidate(self) -> Optional[ParameterPoint]:
        """The point the active thread is waiting on, or None if it has none in flight."""
        thread = self.active_thread
        if thread.state is ThreadState.AWAITING_SCORE:
            return dict(thread.current.parameters)
        return None

    def run_one_iteration(self, params: Mapping[str, int], score: float) -> Optional[ParameterPoint]:
        """
        Feed the score for `params` to the active thread and return the next
        candidate to evaluate, or None when every thread is exhausted.
        """
        thread = self.active_thread
        thread.add_result(params, score)
        self.total_iterations += 1
        self.history.append({
            "iteration": self.total_iterations,
            "thread": self.current_thread,
            "parameters": dict(params),
            "values": decode_point(params, self.ranges),
            "score": score,
        })
        return self._advance()

    def _advance(self) -> Optional[ParameterPoint]:
        n = len(self.threads)
        for _ in range(n):
            self.current_thread = (self.current_thread + 1) % n
            thread = self.threads[self.current_thread]
            # The thread's candidate is still in flight: hand it out again rather than skip it
            if thread.state is ThreadState.AWAITING_SCORE:
                return dict(thread.current.parameters)
            candidate = thread.next_candidate()
            if candidate is not None:
                return candidate
        logger.warning("Every search thread is exhausted after %d iterations", self.total_iterations)
        return None

    # ------------------------------------------------------------------
    # Results and termination
    # ------------------------------------------------------------------

    @property
    def best(self) -> ScoredPoint:
        """Best scored point across all threads."""
        best = ScoredPoint()
        for thread in self.threads:
            if thread.best.is_scored and (not best.is_scored or thread.best.score > best.score):
                best = thread.best
        return best

    @property
    def exhausted(self) -> bool:
        return bool(self.threads) and all(t.exhausted for t in self.threads)

    def finished(self) -> bool:
        """True once every thread has a best score and all of them are equal."""
        scores = [t.best.score for t in self.threads]
        if not scores or any(s is None for s in scores):
            return False
        if min(scores) == max(scores):
            logger.info("All %d threads agree on best score %s", len(scores), scores[0])
            return True
        return False


class AdaptiveTabuSearch(TabuSearch):
    """
    Tabu search whose threads backtrack to the global best when they stall and
    adjust their sampling spread from the trend of recent scores.

    Convergence compares every pair of threads' recent-score windows with a
    location test (Mann–Whitney U by default, at the Bonferroni-adjusted
    level) and a spread test (Levene by default, at the base level), and is
    declared once at least half of the pairs pass both.
    """

    def __init__(
        self,
        ranges: Mapping[str, Sequence],
        config: Optional[TabuSearchConfig] = None,
        location_test: Optional[SampleComparison] = None,
        spread_test: Optional[SampleComparison] = None,
    ) -> None:
        super().__init__(ranges, config)
        self.location_test = location_test or MannWhitneyComparison()
        self.spread_test = spread_test or LeveneComparison()

    def _make_thread(self, start):
        return AdaptiveSearchThread(
            self.ranges,
            start,
            config=self.config.neighbourhood,
            window=self.config.convergence.window,
            rng=self.rng,
            backtrack_cutoff=self.config.backtrack.cutoff,
            backtrack_to=lambda: self.best,
        )

    def finished(self) -> bool:
        if not self.threads or not all(t.window_full for t in self.threads):
            return False

        if len(self.threads) == 1:
            # Nothing to compare against: stop once a full window has passed without improvement
            thread = self.threads[0]
            return thread.iterations_since_best >= len(thread.recent_scores)

        windows = [list(t.recent_scores) for t in self.threads]
        fraction = converged_fraction(
            windows,
            self.location_test,
            self.spread_test,
            location_level=self.config.bonferroni_level,
            spread_level=self.config.convergence.significance,
        )
        if fraction >= 0.5:
            logger.info(
                "Converged: %.0f%% of thread pairs pass both tests after %d iterations",
                fraction * 100, self.total_iterations,
            )
            return True
        return False


def build_search(ranges: Mapping[str, Sequence], config: Optional[TabuSearchConfig] = None) -> TabuSearch:
    """Instantiate the search class selected by config.mode."""
    if config is None:
        config = TabuSearchConfig()
    if config.mode == "parallel":
        return TabuSearch(ranges, config)
    if config.mode == "adaptive":
        return AdaptiveTabuSearch(ranges, config)
    raise InvalidArgumentError(f"Unknown search mode '{config.mode}'")
