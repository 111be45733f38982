"""
Error types raised by the fitting, tidying and grouping helpers.
All derive from ValueError so callers that already guard numeric input keep working.
"""
from __future__ import annotations

from typing import Any


class TidyRegError(ValueError):
    pass


class InvalidModel(TidyRegError):
    """The fit did not succeed or cannot be tidied (rank deficient, no residual df, bad columns)."""


class InvalidConfidenceLevel(TidyRegError):
    def __init__(self, level: Any):
        super().__init__(f"Confidence level must be strictly between 0 and 1, got {level!r}")
        self.level = level


class RowCountMismatch(TidyRegError):
    def __init__(self, expected: int, got: int):
        super().__init__(f"Data has {got} rows but the model was fit on {expected} observations")
        self.expected = expected
        self.got = got


class GroupFitFailure(TidyRegError):
    """A single group failed to fit or tidy. The original error is chained as __cause__."""

    def __init__(self, key: Any, error: BaseException):
        super().__init__(f"Group {key!r} failed: {type(error).__name__}: {error}")
        self.key = key
        self.error = error
