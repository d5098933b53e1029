"""
Budget Aggregation Engine

Pure, stateless functions that turn the fetched collections into the
dashboard's financial summary. Nothing here touches storage.

All arithmetic is done on Decimal. Sums start from Decimal("0") so an
empty collection yields zero, never an error.

DESIGN DECISION: The engine never raises for a failed fetch. The caller
hands it empty collections in place of anything it could not read, and
the derived values come out conservatively at zero.
"""

from decimal import Decimal
from typing import Iterable, Optional, Sequence, TypeVar

from tripbudget.models.charts import ChartExpense, ChartRequest
from tripbudget.models.dashboard import (
    DashboardData,
    MemberContribution,
    PublicContribution,
    PublicDashboard,
)
from tripbudget.models.records import (
    Expense,
    Income,
    LedgerEntry,
    Member,
    TripDay,
)
from tripbudget.services.storage.schema import as_utc, encode_value


ZERO = Decimal("0")

EntryT = TypeVar("EntryT", bound=LedgerEntry)


def _total(amounts: Iterable[Decimal]) -> Decimal:
    return sum(amounts, ZERO)


def compute_dashboard(
    trip_days: Sequence[TripDay],
    members: Sequence[Member],
    expenses: Sequence[Expense],
    incomes: Sequence[Income],
    unavailable: Optional[list[str]] = None,
) -> DashboardData:
    """
    Compute the dashboard summary.

    overall_budget   = sum of trip day budgets
    total_expenses   = sum of expense amounts
    total_incomes    = sum of income amounts
    remaining_budget = overall_budget + total_incomes - total_expenses

    Args:
        trip_days, members, expenses, incomes: Fetched collections,
            already defaulted to empty where a fetch failed
        unavailable: Names of the collections that were defaulted

    Returns:
        DashboardData with totals and the input collections
    """
    overall_budget = _total(day.budget for day in trip_days)
    total_expenses = _total(expense.amount for expense in expenses)
    total_incomes = _total(income.amount for income in incomes)

    return DashboardData(
        overall_budget=overall_budget,
        total_expenses=total_expenses,
        total_incomes=total_incomes,
        remaining_budget=overall_budget + total_incomes - total_expenses,
        trip_days=list(trip_days),
        members=list(members),
        expenses=list(expenses),
        incomes=list(incomes),
        unavailable=list(unavailable or []),
    )


def compute_member_contribution(
    member: Member,
    expenses: Iterable[Expense],
) -> Decimal:
    """Sum of the member's expense amounts; zero if they have none."""
    return _total(
        expense.amount for expense in expenses if expense.member_id == member.id
    )


def summarize_contributions(
    members: Sequence[Member],
    expenses: Sequence[Expense],
) -> list[MemberContribution]:
    """
    Members ranked by total spent, highest first.

    The sort is stable: members with equal totals keep their
    original relative order.
    """
    contributions = []
    for member in members:
        member_expenses = [e for e in expenses if e.member_id == member.id]
        contributions.append(MemberContribution(
            member_id=member.id,
            name=member.name,
            role=member.role,
            total_spent=_total(e.amount for e in member_expenses),
            expenses=member_expenses,
        ))

    contributions.sort(key=lambda c: c.total_spent, reverse=True)
    return contributions


def recent_entries(entries: Iterable[EntryT], limit: int = 5) -> list[EntryT]:
    """Newest entries first, at most `limit` of them."""
    ordered = sorted(entries, key=lambda e: as_utc(e.timestamp), reverse=True)
    return ordered[:max(limit, 0)]


def to_public_dashboard(dashboard: DashboardData) -> PublicDashboard:
    """
    Reduce the dashboard to what the public read-only view may show.

    Per-member totals keep the members' original order.
    """
    return PublicDashboard(
        overall_budget=dashboard.overall_budget,
        total_expenses=dashboard.total_expenses,
        total_incomes=dashboard.total_incomes,
        remaining_budget=dashboard.remaining_budget,
        member_count=len(dashboard.members),
        contributions=[
            PublicContribution(
                name=member.name,
                total=compute_member_contribution(member, dashboard.expenses),
            )
            for member in dashboard.members
        ],
    )


def build_chart_request(dashboard: DashboardData) -> ChartRequest:
    """
    Build the chart suggestion request from the dashboard.

    Uses the name captured on each expense, not the member's current name.
    """
    return ChartRequest(
        overall_budget=float(dashboard.overall_budget),
        expenses=[
            ChartExpense(
                member=expense.member_name,
                amount=float(expense.amount),
                purpose=expense.purpose,
                timestamp=encode_value(expense.timestamp),
            )
            for expense in dashboard.expenses
        ],
    )
