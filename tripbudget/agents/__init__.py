"""AI Agents package."""

from tripbudget.agents.chart_agent import (
    GENERIC_FAILURE_MESSAGE,
    ChartInsightAgent,
    GenerationFailure,
    build_prompt,
    parse_response,
)

__all__ = [
    "GENERIC_FAILURE_MESSAGE",
    "ChartInsightAgent",
    "GenerationFailure",
    "build_prompt",
    "parse_response",
]
