"""Budget aggregation package."""

from tripbudget.aggregation.engine import (
    build_chart_request,
    compute_dashboard,
    compute_member_contribution,
    recent_entries,
    summarize_contributions,
    to_public_dashboard,
)

__all__ = [
    "build_chart_request",
    "compute_dashboard",
    "compute_member_contribution",
    "recent_entries",
    "summarize_contributions",
    "to_public_dashboard",
]
