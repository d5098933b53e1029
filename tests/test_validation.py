"""
Tests for two-stage input validation.
"""

from datetime import date
from decimal import Decimal

import pytest

from tripbudget.models.records import (
    LedgerEntryCreate,
    Member,
    MemberCreate,
    TripDay,
    TripDayCreate,
)
from tripbudget.validation import InputValidationError, RecordValidator


@pytest.fixture
def validator():
    return RecordValidator()


class TestSchemaValidation:
    """Stage 1: field constraints."""

    def test_valid_expense(self, validator):
        entry = validator.validate(
            LedgerEntryCreate,
            {"member_id": "m1", "amount": "200", "purpose": "Gas"},
        )
        assert entry.amount == Decimal("200")

    def test_missing_member(self, validator):
        with pytest.raises(InputValidationError) as exc:
            validator.validate(LedgerEntryCreate, {"amount": "200", "purpose": "Gas"})

        assert exc.value.fields == ["member_id"]
        assert exc.value.issues[0].message == "Member id is required."

    def test_non_positive_amount(self, validator):
        with pytest.raises(InputValidationError) as exc:
            validator.validate(
                LedgerEntryCreate,
                {"member_id": "m1", "amount": "0", "purpose": "Gas"},
            )

        assert exc.value.issues[0].issue_type == "greater_than"
        assert exc.value.issues[0].message == "Amount must be positive."

    def test_short_purpose(self, validator):
        with pytest.raises(InputValidationError) as exc:
            validator.validate(
                LedgerEntryCreate,
                {"member_id": "m1", "amount": "10", "purpose": "ab"},
            )

        assert exc.value.issues[0].message == "Purpose must be at least 3 characters."

    def test_too_many_decimal_places(self, validator):
        with pytest.raises(InputValidationError) as exc:
            validator.validate(
                LedgerEntryCreate,
                {"member_id": "m1", "amount": "10.005", "purpose": "Tea"},
            )

        assert exc.value.issues[0].message == "Amount can have at most two decimal places."

    def test_negative_budget(self, validator):
        with pytest.raises(InputValidationError) as exc:
            validator.validate(
                TripDayCreate,
                {"date": "2024-05-01", "places": "Tea Estates", "budget": "-5"},
            )

        assert exc.value.issues[0].message == "Budget must be a positive number."

    def test_all_issues_reported(self, validator):
        """Test that every failing field is reported at once."""
        with pytest.raises(InputValidationError) as exc:
            validator.validate(MemberCreate, {"name": "A", "role": "X"})

        assert sorted(exc.value.fields) == ["name", "role"]
        assert len(exc.value.to_dicts()) == 2

    def test_whitespace_only_name_is_too_short(self, validator):
        with pytest.raises(InputValidationError):
            validator.validate(MemberCreate, {"name": "   ", "role": "Driver"})


class TestSemanticValidation:
    """Stage 2: references and duplicates."""

    def test_resolve_member(self, validator):
        alice = Member(id="m1", name="Alice", role="Organizer")
        assert validator.resolve_member("m1", [alice]) is alice

    def test_unknown_member(self, validator):
        with pytest.raises(InputValidationError) as exc:
            validator.resolve_member("ghost", [Member(id="m1", name="Alice", role="Organizer")])

        assert exc.value.issues[0].issue_type == "unknown_member"
        assert exc.value.issues[0].message == "Please select a member."

    def test_duplicate_date_is_a_warning(self, validator):
        existing = [TripDay(id="d1", date=date(2024, 5, 1), places="Tea Estates", budget=Decimal("800"))]
        new_day = TripDayCreate(date=date(2024, 5, 1), places="Monkey Falls", budget=Decimal("100"))

        issues = validator.check_trip_day(new_day.date, existing)

        assert len(issues) == 1
        assert issues[0].severity == "warning"
        assert issues[0].issue_type == "date_already_planned"

    def test_editing_a_day_does_not_warn_about_itself(self, validator):
        existing = [TripDay(id="d1", date=date(2024, 5, 1), places="Tea Estates", budget=Decimal("800"))]
        same_day = TripDayCreate(date=date(2024, 5, 1), places="Tea Estates", budget=Decimal("900"))

        assert validator.check_trip_day(same_day.date, existing, exclude_id="d1") == []


class TestUserFriendlySummary:

    def test_summary_lists_each_issue(self, validator):
        with pytest.raises(InputValidationError) as exc:
            validator.validate(MemberCreate, {"name": "A", "role": "X"})

        summary = validator.get_user_friendly_summary(exc.value)

        assert summary.startswith("Please fix the following:")
        assert "Name must be at least 2 characters." in summary
        assert "Role must be at least 3 characters." in summary
