# tune/objective.py

"""
Helpers around the objective being maximised.

An objective is any callable taking a dict of decoded parameter values and
returning a real number; higher is better. Anything that is not a finite
number (NaN, None, a crashed evaluation) is scored as `failure_score` so the
search moves away from that region.
"""

import importlib
import math
from typing import Any, Callable

Objective = Callable[[dict[str, Any]], float]

FAILURE_SCORE = float("-inf")


def safe_score(value, failure_score: float = FAILURE_SCORE) -> float:
    """Return value as a float, or failure_score if it is missing or NaN."""
    if value is None:
        return failure_score
    value = float(value)
    if math.isnan(value):   # NaN guard
        return failure_score
    return value


def minimize(objective: Objective) -> Objective:
    """Wrap an objective so that lower raw values score higher."""
    def negated(values: dict[str, Any]) -> float:
        return -objective(values)

    return negated


def resolve(reference: str) -> Any:
    """Import `package.module:attribute` and return the attribute."""
    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Expected 'module:attribute', got '{reference}'")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise ImportError(f"Module '{module_name}' has no attribute '{attr}'") from exc
