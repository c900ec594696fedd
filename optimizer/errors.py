"""
Exception taxonomy for the tabu search optimiser.

All three conditions are programmer/configuration errors: they abort the call
that triggered them and are never retried. Running out of fresh neighbours is
not an error and is reported as a failure count instead (see Hood.populate).
"""


class TabuSearchError(Exception):
    """Base class for every error raised by the optimiser."""


class InvalidArgumentError(TabuSearchError, ValueError):
    """A required construction argument is missing or malformed."""


class OutOfRangeError(TabuSearchError, IndexError):
    """A parameter index lies outside its declared range."""


class MismatchedParametersError(TabuSearchError, RuntimeError):
    """A score was reported for parameters that are not the candidate in flight."""
