# tune/runner.py

"""
In-process driver for a tabu search.

Each iteration:
  1. The search hands out a candidate (indices into the ranges)
  2. The candidate is decoded into parameter values
  3. The objective is evaluated on those values
  4. The score is fed back and the search returns the next candidate

The loop stops when the search reports convergence, when every thread has run
out of fresh points, or when the iteration cap is reached.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence, Union

from config import TabuSearchConfig
from optimizer.points import decode_point, encode_values
from optimizer.tabu_search import AdaptiveTabuSearch, TabuSearch, build_search
from tune.objective import FAILURE_SCORE, Objective, safe_score

logger = logging.getLogger(__name__)

StartValues = Union[None, Mapping[str, Any], Sequence[Mapping[str, Any]]]


@dataclass
class SearchResult:
    best_values: dict[str, Any]
    best_score: Optional[float]
    iterations: int
    finished: bool
    exhausted: bool
    search: TabuSearch = field(repr=False)

    def __repr__(self) -> str:
        return (
            f"SearchResult(\n"
            f"  best_score={self.best_score},\n"
            f"  best_values={self.best_values},\n"
            f"  iterations={self.iterations},\n"
            f"  finished={self.finished}, exhausted={self.exhausted}\n"
            f")"
        )


def _encode_start(start: StartValues, ranges) -> Any:
    if start is None:
        return None
    if isinstance(start, Mapping):
        return encode_values(start, ranges)
    return [encode_values(s, ranges) for s in start]


def run_search(
    objective: Objective,
    ranges: Mapping[str, Sequence],
    config: Optional[TabuSearchConfig] = None,
    start: StartValues = None,
    max_iterations: int = 1000,
    failure_score: float = FAILURE_SCORE,
    progress_every: int = 0,
) -> SearchResult:
    """
    Maximise `objective` over the discrete `ranges`.

    `start` is given in parameter values (not indices): one dict seeds the
    first thread, a list of dicts seeds threads in order, None starts every
    thread at random. Set progress_every > 0 to print a progress line every
    that many iterations.
    """
    search = build_search(ranges, config)
    candidate = search.setup(_encode_start(start, search.ranges))
    finished = False
    # A lone independent thread always agrees with itself, so only the cap or exhaustion stops it
    can_converge = isinstance(search, AdaptiveTabuSearch) or len(search.threads) > 1

    while candidate is not None and search.total_iterations < max_iterations:
        values = decode_point(candidate, search.ranges)
        try:
            score = safe_score(objective(values), failure_score)
        except Exception as exc:
            # Log and score it as a failure so the search moves elsewhere
            logger.warning("Objective failed for %s: %s", values, exc)
            score = failure_score

        candidate = search.run_one_iteration(candidate, score)

        if progress_every and search.total_iterations % progress_every == 0:
            print(
                f"Iteration {search.total_iterations}/{max_iterations}: "
                f"best={search.best.score}"
            )
        finished = can_converge and search.finished()
        if finished:
            break

    best = search.best
    best_values = decode_point(best.parameters, search.ranges) if best.is_scored else {}
    return SearchResult(
        best_values=best_values,
        best_score=best.score,
        iterations=search.total_iterations,
        finished=finished,
        exhausted=search.exhausted,
        search=search,
    )
