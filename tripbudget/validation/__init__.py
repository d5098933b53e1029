"""Input validation package."""

from tripbudget.validation.validator import (
    InputValidationError,
    RecordValidator,
    ValidationIssue,
)

__all__ = [
    "InputValidationError",
    "RecordValidator",
    "ValidationIssue",
]
