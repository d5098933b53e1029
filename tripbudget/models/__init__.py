"""
Data Models Package

This package contains all Pydantic models used in the Trip Budget Tracker.
All data flowing through the system must conform to these schemas.
"""

from tripbudget.models.records import (
    Expense,
    Income,
    LedgerEntry,
    LedgerEntryCreate,
    LedgerEntryUpdate,
    Member,
    MemberCreate,
    MemberUpdate,
    TripDay,
    TripDayCreate,
    TripDayUpdate,
)
from tripbudget.models.dashboard import (
    DashboardData,
    MemberContribution,
    PublicContribution,
    PublicDashboard,
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

__all__ = [
    # Records
    "Expense",
    "Income",
    "LedgerEntry",
    "LedgerEntryCreate",
    "LedgerEntryUpdate",
    "Member",
    "MemberCreate",
    "MemberUpdate",
    "TripDay",
    "TripDayCreate",
    "TripDayUpdate",
    # Derived
    "DashboardData",
    "MemberContribution",
    "PublicContribution",
    "PublicDashboard",
    # Chart contract
    "ChartConfiguration",
    "ChartConfigurationsResponse",
    "ChartExpense",
    "ChartRequest",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
