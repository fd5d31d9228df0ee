"""
Error taxonomy for stsmooth.

Per-split and per-time-step conditions (NoSupportError,
InsufficientDataError) are recovered where they occur; selection and
deadline failures are fatal to a run.
"""

from typing import Any, Dict, Optional

__all__ = [
    "SmootherError",
    "DataValidationError",
    "ParameterError",
    "NoSupportError",
    "InsufficientDataError",
    "SelectionFailureError",
    "DeadlineExceededError",
]


class SmootherError(Exception):
    """Base exception for stsmooth errors."""

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize error.

        Args:
            message: Primary error message
            suggestion: Optional hint for fixing the error
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class DataValidationError(SmootherError):
    """Input table or observation values are malformed."""


class ParameterError(SmootherError, ValueError):
    """A parameter (bandwidth, grid bounds, candidates, ...) is invalid."""


class NoSupportError(SmootherError):
    """
    Total kernel weight at a query point is zero (or below threshold).

    Raised when no observation lies within the effective range of the
    query point for the given bandwidth, or when there are no
    observations at all.
    """


class InsufficientDataError(SmootherError):
    """A time step has fewer than 2 observations, so LOOCV is impossible."""


class SelectionFailureError(SmootherError):
    """Every candidate bandwidth produced a missing cross-validation error."""


class DeadlineExceededError(SmootherError):
    """A bounded computation ran past its deadline."""
