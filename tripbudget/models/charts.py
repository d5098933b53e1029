"""
Chart Insight Contract

Request and response shapes for the AI chart suggestion call.

The wire format uses camelCase keys (overallBudget, chartConfigurations);
Python code uses the snake_case attribute names. Both are accepted
when validating.

CRITICAL: Nothing the model returns is trusted beyond its shape.
Chart data may be empty, missing or of the wrong type, so the
rendering helpers below never index into data blindly.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ChartExpense(_WireModel):
    """One expense as sent to the model."""

    member: str = Field(description="The name of the member who contributed")
    amount: float = Field(description="The amount contributed by the member")
    purpose: str = Field(description="The purpose of the contribution")
    timestamp: str = Field(description="ISO-8601 timestamp of the contribution")


class ChartRequest(_WireModel):
    """Input for chart generation."""

    overall_budget: float = Field(description="The overall budget for the trip")
    expenses: list[ChartExpense] = Field(default_factory=list)


class ChartConfiguration(_WireModel):
    """A single chart suggestion."""

    type: str = Field(description="Chart type (pie, bar, line)")
    data: Any = Field(default=None, description="Data rows for the chart")
    options: Any = Field(default=None, description="Renderer options")
    description: str = Field(description="What the chart visualizes")

    @property
    def kind(self) -> str:
        return self.type.strip().lower()

    @property
    def title(self) -> Optional[str]:
        """Title from options, if the model supplied one."""
        if isinstance(self.options, dict):
            title = self.options.get("title")
            if isinstance(title, str) and title.strip():
                return title.strip()
        return None

    def rows(self) -> list[dict]:
        """
        Data as a list of dict rows.

        Anything that is not a list of dicts is dropped, so an
        empty or malformed payload yields an empty list.
        """
        if not isinstance(self.data, list):
            return []
        return [row for row in self.data if isinstance(row, dict)]

    def value_key(self, label_key: str = "name") -> str:
        """
        Key holding the plotted value for bar and line charts.

        First key of the first row that is not the label key;
        "value" when there are no rows.
        """
        rows = self.rows()
        if not rows:
            return "value"
        for key in rows[0]:
            if key != label_key:
                return key
        return "value"


class ChartConfigurationsResponse(_WireModel):
    """Output of chart generation."""

    chart_configurations: list[ChartConfiguration] = Field(
        ...,
        description="Suggested charts, possibly empty"
    )
