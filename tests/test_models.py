"""
Tests for Trip Budget Tracker models

Test strategy:
1. Unit tests for individual components (models, validators, engine)
2. Integration tests for flows (with the in-memory store)
3. No real API calls in tests (use fakes and stubs)
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

from tripbudget.models.records import (
    LedgerEntryCreate,
    LedgerEntryUpdate,
    Member,
    MemberCreate,
    TripDay,
    TripDayCreate,
)
from tripbudget.models.dashboard import (
    DashboardData,
    MemberContribution,
)
from tripbudget.models.charts import (
    ChartConfiguration,
    ChartConfigurationsResponse,
    ChartExpense,
    ChartRequest,
)
from tripbudget.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestRecordModels:
    """Tests for the stored record models."""

    def test_member_creation(self):
        """Test Member model creation."""
        member = Member(id="m1", name="Alice", role="Organizer")
        assert member.name == "Alice"
        assert member.role == "Organizer"

    def test_member_strips_whitespace(self):
        """Test that whitespace is stripped from member names."""
        member = MemberCreate(name="  Alice  ", role="Organizer")
        assert member.name == "Alice"

    def test_member_name_too_short(self):
        """Test that one-letter names are rejected."""
        with pytest.raises(ValueError):
            MemberCreate(name="A", role="Organizer")

    def test_ledger_entry_rejects_zero_amount(self):
        """Test that amounts must be strictly positive."""
        with pytest.raises(ValueError):
            LedgerEntryCreate(member_id="m1", amount=Decimal("0"), purpose="Lunch")

    def test_ledger_entry_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            LedgerEntryCreate(member_id="m1", amount=Decimal("-100"), purpose="Lunch")

    def test_ledger_entry_timestamp_optional(self):
        """Test that the timestamp can be left to the store."""
        entry = LedgerEntryCreate(member_id="m1", amount=Decimal("200"), purpose="Gas")
        assert entry.timestamp is None

    def test_ledger_entry_update_tracks_supplied_fields(self):
        """Test that a partial update only reports the fields it was given."""
        update = LedgerEntryUpdate(amount=Decimal("250.50"))
        assert update.model_dump(exclude_unset=True) == {"amount": Decimal("250.50")}

    def test_trip_day_allows_zero_budget(self):
        """Test that a free day is a valid trip day."""
        day = TripDayCreate(date=date(2024, 5, 1), places="Rest day", budget=Decimal("0"))
        assert day.budget == Decimal("0")

    def test_trip_day_rejects_negative_budget(self):
        with pytest.raises(ValueError):
            TripDayCreate(date=date(2024, 5, 1), places="Tea Estates", budget=Decimal("-1"))

    def test_trip_day_display_label(self):
        """Test that the display label falls back to the date."""
        labelled = TripDay(id="d1", label="Day 1", date=date(2024, 5, 1), places="Tea Estates", budget=Decimal("800"))
        unlabelled = TripDay(id="d2", date=date(2024, 5, 2), places="Monkey Falls", budget=Decimal("1600"))
        assert labelled.display_label == "Day 1"
        assert unlabelled.display_label == "Thu, 02 May 2024"


class TestDashboardModels:
    """Tests for the derived dashboard models."""

    def test_dashboard_defaults_to_zero(self):
        dashboard = DashboardData()
        assert dashboard.overall_budget == Decimal("0")
        assert dashboard.remaining_budget == Decimal("0")
        assert dashboard.is_over_budget is False
        assert dashboard.is_degraded is False

    def test_dashboard_over_budget(self):
        """Test the over-budget flag."""
        dashboard = DashboardData(remaining_budget=Decimal("-450"))
        assert dashboard.is_over_budget is True

    def test_dashboard_degraded(self):
        dashboard = DashboardData(unavailable=["expenses"])
        assert dashboard.is_degraded is True

    def test_member_contribution_initials(self):
        contribution = MemberContribution(member_id="m1", name="charlie", role="Cook")
        assert contribution.initials == "CH"


class TestChartModels:
    """Tests for the chart suggestion contract."""

    def test_chart_request_uses_camel_case_on_the_wire(self):
        """Test that requests serialize with camelCase keys."""
        request = ChartRequest(
            overall_budget=2400.0,
            expenses=[ChartExpense(member="Alice", amount=200.0, purpose="Gas", timestamp="2024-05-01T10:00:00+00:00")],
        )
        wire = request.model_dump(by_alias=True)
        assert wire["overallBudget"] == 2400.0
        assert wire["expenses"][0]["member"] == "Alice"

    def test_response_parses_camel_case(self):
        response = ChartConfigurationsResponse.model_validate({
            "chartConfigurations": [{
                "type": "Pie",
                "data": [{"name": "Alice", "value": 500}],
                "options": {"title": "Spend by member"},
                "description": "Who paid what",
            }]
        })
        chart = response.chart_configurations[0]
        assert chart.kind == "pie"
        assert chart.title == "Spend by member"

    def test_response_requires_chart_configurations(self):
        """Test that a reply without the key is a schema violation."""
        with pytest.raises(ValueError):
            ChartConfigurationsResponse.model_validate({"charts": []})

    def test_value_key_skips_label(self):
        chart = ChartConfiguration(
            type="bar",
            data=[{"name": "Alice", "spent": 500}],
            description="Spend",
        )
        assert chart.value_key() == "spent"

    def test_value_key_with_empty_data(self):
        """Test that empty chart data is handled without raising."""
        chart = ChartConfiguration(type="bar", data=[], description="Nothing yet")
        assert chart.rows() == []
        assert chart.value_key() == "value"

    def test_rows_with_malformed_data(self):
        """Test that non-list data and non-dict rows are dropped."""
        assert ChartConfiguration(type="pie", data="oops", description="x").rows() == []
        chart = ChartConfiguration(type="pie", data=[1, {"name": "A", "value": 1}], description="x")
        assert chart.rows() == [{"name": "A", "value": 1}]

    def test_title_missing(self):
        chart = ChartConfiguration(type="line", options=None, description="Trend")
        assert chart.title is None


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            description="Test record created",
        )
        assert event.event_type == AuditEventType.RECORD_CREATED
        assert event.severity == AuditSeverity.INFO
        assert event.timestamp.tzinfo is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            description="Expense saved",
            details={"purpose": "Gas", "amount": "200"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "record_created"
        assert log_dict["details"]["purpose"] == "Gas"

    def test_audit_event_builder_record_created(self):
        """Test AuditEventBuilder.record_created."""
        correlation_id = uuid4()

        event = AuditEventBuilder.record_created(
            collection="expenses",
            record_id="abc123",
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.RECORD_CREATED
        assert event.entity_type == "expenses"
        assert event.entity_id == "abc123"
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True

    def test_audit_event_builder_fetch_failed_is_warning(self):
        event = AuditEventBuilder.collection_fetch_failed(
            collection="incomes",
            error_message="quota exceeded",
        )
        assert event.severity == AuditSeverity.WARNING
        assert event.error_message == "quota exceeded"

    def test_dashboard_computed_severity(self):
        """Test that a degraded dashboard is logged as a warning."""
        healthy = AuditEventBuilder.dashboard_computed(totals={}, unavailable=[])
        degraded = AuditEventBuilder.dashboard_computed(totals={}, unavailable=["expenses"])
        assert healthy.severity == AuditSeverity.DEBUG
        assert degraded.severity == AuditSeverity.WARNING

    def test_audit_event_builder_store_write_failed(self):
        event = AuditEventBuilder.store_write_failed(
            collection="expenses",
            operation="delete",
            error_message="quota exceeded",
            record_id="e1",
        )
        assert event.event_type == AuditEventType.STORE_WRITE_FAILED
        assert event.severity == AuditSeverity.ERROR
        assert event.entity_id == "e1"
        assert event.description == "Could not delete expenses record"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
