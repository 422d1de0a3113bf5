# MIT License
"""Exception hierarchy for the carbon estimation pipeline.

Covariate lookups never raise (a failed source is simply absent), so
every error defined here reaches the caller of the operation that
produced it.
"""
from __future__ import annotations


class CarbonError(Exception):
    """Base class for all pipeline errors."""


class InputError(CarbonError, ValueError):
    """A request, label or training matrix is malformed."""


class DimensionMismatchError(InputError):
    """A feature vector does not match the model's coefficient count."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Feature vector length mismatch: expected {expected}, got {actual}")


class InsufficientExamplesError(CarbonError):
    """Training was requested with fewer examples than the minimum."""

    def __init__(self, count: int, minimum: int) -> None:
        self.count = count
        self.minimum = minimum
        super().__init__(f"not enough training examples: {count} (min {minimum})")


class RepositoryError(CarbonError):
    """The record store could not be read or written."""


class VersionConflictError(RepositoryError):
    """A model version already exists for this name."""

    def __init__(self, name: str, version: int) -> None:
        self.name = name
        self.version = version
        super().__init__(f"model {name!r} version {version} already exists")
