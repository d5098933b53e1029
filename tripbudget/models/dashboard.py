"""
Derived Dashboard Models

Nothing in this module is persisted. Every value is recomputed
from the fetched collections on each read.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from tripbudget.models.records import Expense, Income, Member, TripDay


class DashboardData(BaseModel):
    """
    The dashboard's financial summary plus the collections it was built from.

    remaining_budget = overall_budget + total_incomes - total_expenses
    """

    overall_budget: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    total_incomes: Decimal = Decimal("0")
    remaining_budget: Decimal = Decimal("0")

    trip_days: list[TripDay] = Field(default_factory=list)
    members: list[Member] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    incomes: list[Income] = Field(default_factory=list)

    # Collections that could not be fetched and were treated as empty
    unavailable: list[str] = Field(default_factory=list)

    @property
    def is_over_budget(self) -> bool:
        return self.remaining_budget < 0

    @property
    def is_degraded(self) -> bool:
        """True when at least one collection was replaced by an empty one."""
        return bool(self.unavailable)


class MemberContribution(BaseModel):
    """A member together with everything they spent."""

    member_id: str
    name: str
    role: str
    total_spent: Decimal = Decimal("0")
    expenses: list[Expense] = Field(default_factory=list)

    @property
    def initials(self) -> str:
        return self.name[:2].upper()


class PublicContribution(BaseModel):
    """Per-member total as shown on the public page."""

    name: str
    total: Decimal


class PublicDashboard(BaseModel):
    """
    What the public read-only view is allowed to see.

    Aggregates only - no individual expense or income rows.
    """

    overall_budget: Decimal
    total_expenses: Decimal
    total_incomes: Decimal
    remaining_budget: Decimal
    member_count: int = Field(ge=0)
    contributions: list[PublicContribution] = Field(default_factory=list)

    @property
    def is_over_budget(self) -> bool:
        return self.remaining_budget < 0
