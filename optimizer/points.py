"""
Data model for points in a discretised parameter space.

A ParameterRange is the ordered tuple of legal values for one parameter. Search
state never stores values, only indices into those ranges: a ParameterPoint maps
each parameter name to such an index. A ScoredPoint pairs a ParameterPoint with
its score (None until the point has been evaluated).
"""
from __future__ import annotations

import itertools
import math
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping, Optional

import numpy as np

from optimizer.errors import OutOfRangeError

ParameterRange = tuple
ParameterPoint = dict[str, int]
Ranges = Mapping[str, ParameterRange]


@dataclass
class ScoredPoint:
    parameters: Optional[ParameterPoint] = None
    score: Optional[float] = None

    @property
    def is_scored(self) -> bool:
        return self.score is not None

    def copy(self) -> "ScoredPoint":
        params = dict(self.parameters) if self.parameters is not None else None
        return ScoredPoint(parameters=params, score=self.score)


def point_key(point: Mapping[str, int]) -> tuple:
    """Hashable, order-independent key for a ParameterPoint."""
    return tuple(sorted(point.items()))


class TabuSet:
    """
    Points already generated or scored within one trajectory.

    Grows monotonically. One instance is owned by a SearchThread and handed by
    reference to every Hood it builds.
    """

    def __init__(self, points: Iterable[Mapping[str, int]] = ()) -> None:
        self._keys: set[tuple] = set()
        for point in points:
            self.add(point)

    def add(self, point: Mapping[str, int]) -> None:
        self._keys.add(point_key(point))

    def __contains__(self, point: Mapping[str, int]) -> bool:
        return point_key(point) in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self):
        for key in self._keys:
            yield dict(key)


def normalize_ranges(ranges: Mapping[str, Iterable[Any]]) -> dict[str, ParameterRange]:
    """Freeze every range into a tuple so it cannot be mutated during search."""
    return {name: tuple(values) for name, values in ranges.items()}


def domain_size(ranges: Ranges) -> int:
    return math.prod(len(values) for values in ranges.values())


def check_in_range(point: Mapping[str, int], ranges: Ranges) -> None:
    """Raise OutOfRangeError unless every index in point addresses its range."""
    for name, index in point.items():
        if name not in ranges:
            raise OutOfRangeError(f"parameter '{name}' has no declared range")
        if index < 0 or index >= len(ranges[name]):
            raise OutOfRangeError(
                f"value {index} is not an index to range '{name}' "
                f"(size {len(ranges[name])})"
            )


def iter_points(ranges: Ranges) -> Iterator[ParameterPoint]:
    """Every point of the domain, in lexicographic index order."""
    names = list(ranges)
    for indices in itertools.product(*(range(len(ranges[n])) for n in names)):
        yield dict(zip(names, indices))


def random_point(ranges: Ranges, rng: np.random.Generator) -> ParameterPoint:
    """Draw one index per parameter, uniformly over each range."""
    return {name: int(rng.integers(0, len(values))) for name, values in ranges.items()}


def decode_point(point: Mapping[str, int], ranges: Ranges) -> dict[str, Any]:
    """Translate a ParameterPoint of indices into the actual parameter values."""
    return {name: ranges[name][index] for name, index in point.items()}


def encode_values(values: Mapping[str, Any], ranges: Ranges) -> ParameterPoint:
    """Inverse of decode_point: look up the index of each value in its range."""
    point = {}
    for name, value in values.items():
        try:
            point[name] = ranges[name].index(value)
        except (KeyError, ValueError) as exc:
            raise OutOfRangeError(f"value {value!r} is not in range '{name}'") from exc
    return point
