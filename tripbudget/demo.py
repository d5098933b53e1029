"""
Sample trip for running the app without a backend.

Everything goes through LedgerFlow, so the sample data is validated
and audited exactly like user input.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from tripbudget.orchestrator import LedgerFlow


DEMO_TRIP_DAYS = [
    ("Day 1", "Tea Estates, Nirar Dam", Decimal("800")),
    ("Day 2", "Monkey Falls, Balaji Temple", Decimal("1600")),
]

DEMO_MEMBERS = [
    ("Alice", "Organizer"),
    ("Bob", "Driver"),
    ("Charlie", "Cook"),
    ("Diana", "Member"),
]

# (member name, amount, purpose)
DEMO_EXPENSES = [
    ("Alice", Decimal("200"), "Gas"),
    ("Bob", Decimal("2000"), "Homestay"),
    ("Charlie", Decimal("200"), "Snacks"),
    ("Alice", Decimal("300"), "Lunch"),
    ("Diana", Decimal("150"), "Entry Tickets"),
]


async def seed_demo_trip(ledger: LedgerFlow, start: Optional[date] = None) -> dict[str, str]:
    """
    Write the sample trip.

    Args:
        ledger: Flow to write through
        start: Date of the day before Day 1 (defaults to today)

    Returns:
        Member name -> member id
    """
    start = start or date.today()

    for offset, (label, places, budget) in enumerate(DEMO_TRIP_DAYS, start=1):
        await ledger.add_trip_day(
            day=start + timedelta(days=offset),
            places=places,
            budget=budget,
            label=label,
        )

    member_ids = {}
    for name, role in DEMO_MEMBERS:
        member_ids[name] = await ledger.add_member(name=name, role=role)

    for name, amount, purpose in DEMO_EXPENSES:
        await ledger.add_expense(
            member_id=member_ids[name],
            amount=amount,
            purpose=purpose,
        )

    return member_ids
