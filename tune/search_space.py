# tune/search_space.py

"""
Turns a compact search-space description into the discrete ranges the tabu
search walks over.

Each entry maps a parameter name to a tuple:
  ("int",   low, high, step)    integers from low to high inclusive
  ("float", low, high, step)    evenly spaced floats from low to high inclusive
  ("cat",   [choices...])       explicit values, kept in the given order

Step may be omitted for "int" (defaults to 1) but is required for "float".
"""

import numpy as np

from optimizer.errors import InvalidArgumentError


def _int_range(name, spec):
    if len(spec) == 3:
        _, low, high = spec
        step = 1
    else:
        _, low, high, step = spec
    if step <= 0 or high < low:
        raise InvalidArgumentError(f"Bad int range for '{name}': {spec}")
    return tuple(range(int(low), int(high) + 1, int(step)))


def _float_range(name, spec):
    if len(spec) != 4:
        raise InvalidArgumentError(f"Float range for '{name}' needs (low, high, step): {spec}")
    _, low, high, step = spec
    if step <= 0 or high < low:
        raise InvalidArgumentError(f"Bad float range for '{name}': {spec}")
    n = int(np.floor((high - low) / step + 1e-9)) + 1
    values = np.round(low + step * np.arange(n), 10)
    return tuple(float(v) for v in values)


def build_ranges(space: dict) -> dict[str, tuple]:
    """Expand every entry of `space` into a tuple of legal values."""
    ranges = {}
    for name, spec in space.items():
        kind = spec[0]
        if kind == "int":
            ranges[name] = _int_range(name, spec)
        elif kind == "float":
            ranges[name] = _float_range(name, spec)
        elif kind == "cat":
            _, choices = spec
            if not choices:
                raise InvalidArgumentError(f"No choices given for '{name}'")
            ranges[name] = tuple(choices)
        else:
            raise InvalidArgumentError(f"Unknown search space kind '{kind}' for '{name}'")
    return ranges
