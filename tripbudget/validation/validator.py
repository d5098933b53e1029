"""
Two-Stage Input Validation

DESIGN DECISION: Validation happens before any store call, in two stages:

STAGE 1 - SCHEMA VALIDATION:
- Required fields present
- Amounts strictly positive, trip day budgets non-negative
- Minimum text lengths (purpose, places, name, role)
- Runs the pydantic input models and translates their errors

STAGE 2 - SEMANTIC VALIDATION:
- The member an expense or income points at exists
- A trip day does not double-book a date that is already planned

Errors stop the operation. Warnings are reported but do not block.

IMPORTANT: Validation NEVER silently fixes input.
It reports issues for the user to correct.
"""

from datetime import date
from typing import Iterable, Optional, TypeVar

from pydantic import BaseModel, Field, ValidationError

from tripbudget.models.records import Member, TripDay


ModelT = TypeVar("ModelT", bound=BaseModel)


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(..., description="Field with the issue")
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'string_too_short', 'unknown_member')"
    )
    message: str = Field(..., description="Human-readable description of the issue")
    severity: str = Field(
        default="error",
        pattern="^(error|warning)$",
    )


class InputValidationError(Exception):
    """Input failed field constraints; the operation was not attempted."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("; ".join(issue.message for issue in issues))

    @property
    def fields(self) -> list[str]:
        return [issue.field for issue in self.issues]

    def to_dicts(self) -> list[dict]:
        return [
            {"field": i.field, "type": i.issue_type, "message": i.message}
            for i in self.issues
        ]


def _label(field: str) -> str:
    return field.replace("_", " ").capitalize() if field else "Value"


def _issue_from_error(error: dict) -> ValidationIssue:
    """Turn one pydantic error into a user-facing issue."""
    field = ".".join(str(part) for part in error.get("loc", ()))
    error_type = error.get("type", "invalid")
    ctx = error.get("ctx") or {}
    label = _label(field)

    if error_type == "missing":
        message = f"{label} is required."
    elif error_type == "string_too_short":
        message = f"{label} must be at least {ctx.get('min_length')} characters."
    elif error_type == "string_too_long":
        message = f"{label} must be at most {ctx.get('max_length')} characters."
    elif error_type == "greater_than":
        message = f"{label} must be positive."
    elif error_type == "greater_than_equal":
        message = f"{label} must be a positive number."
    elif error_type in ("decimal_max_places", "decimal_max_digits"):
        message = f"{label} can have at most two decimal places."
    else:
        message = f"{label}: {error.get('msg', 'invalid value')}"

    return ValidationIssue(field=field, issue_type=error_type, message=message)


class RecordValidator:
    """
    Validates user input for the four collections.

    Stage 1 needs nothing but the payload.
    Stage 2 needs the records the payload refers to.
    """

    def validate(self, model: type[ModelT], payload: dict) -> ModelT:
        """
        Stage 1: schema validation.

        Returns:
            The validated input model

        Raises:
            InputValidationError: With one issue per failed constraint
        """
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise InputValidationError(
                [_issue_from_error(error) for error in e.errors()]
            ) from e

    def resolve_member(
        self,
        member_id: str,
        members: Iterable[Member],
    ) -> Member:
        """
        Stage 2 for expenses and incomes: the member must exist.

        Returns the member so the caller can capture its name.
        """
        for member in members:
            if member.id == member_id:
                return member
        raise InputValidationError([ValidationIssue(
            field="member_id",
            issue_type="unknown_member",
            message="Please select a member.",
        )])

    def check_trip_day(
        self,
        day_date: date,
        existing: Iterable[TripDay],
        exclude_id: Optional[str] = None,
    ) -> list[ValidationIssue]:
        """
        Stage 2 for trip days. Only ever returns warnings.

        A second plan for the same date is allowed (split days happen)
        but worth pointing out.
        """
        issues = []
        for other in existing:
            if other.id != exclude_id and other.date == day_date:
                issues.append(ValidationIssue(
                    field="date",
                    issue_type="date_already_planned",
                    message=f"{day_date.isoformat()} already has a plan ({other.places}).",
                    severity="warning",
                ))
        return issues

    def get_user_friendly_summary(self, error: InputValidationError) -> str:
        """One line per issue, ready to show next to the form."""
        lines = ["Please fix the following:"]
        for issue in error.issues:
            lines.append(f"   • {issue.message}")
        return "\n".join(lines)
