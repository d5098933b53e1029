"""
AI Chart Suggestion Agent

DESIGN DECISION: Chart suggestions come from a single templated prompt
to Gemini. The model returns JSON which is validated against the
ChartConfigurationsResponse schema before anything is rendered.

BOUNDARIES:
- CAN: Suggest chart types, data rows and options from the budget
  and the expense list it is given
- CANNOT: Change any stored data
- CANNOT: Affect the dashboard totals, which are computed locally

Any failure (transport error, non-JSON text, schema violation) becomes
a GenerationFailure. The dashboard keeps working without the charts.
"""

import json
from typing import Optional

import google.generativeai as genai
from pydantic import ValidationError

from tripbudget.config import GeminiSettings
from tripbudget.models.charts import (
    ChartConfiguration,
    ChartConfigurationsResponse,
    ChartRequest,
)


GENERIC_FAILURE_MESSAGE = "Failed to generate AI-powered chart suggestions."


class GenerationFailure(Exception):
    """The chart suggestion call failed or returned malformed output."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(GENERIC_FAILURE_MESSAGE)


def build_prompt(request: ChartRequest) -> str:
    """Render the chart suggestion prompt for one request."""
    expense_lines = "\n".join(
        f"  - Member: {e.member}, Amount: {e.amount}, "
        f"Purpose: {e.purpose}, Timestamp: {e.timestamp}"
        for e in request.expenses
    ) or "  (no expenses logged yet)"

    return f"""You are an expert data visualization specialist. Given the overall budget for a trip and a list of expenses, suggest chart configurations that would be most helpful in visualizing the financial status of the trip.

Overall Budget: {request.overall_budget}

Expenses:
{expense_lines}

Consider these chart types:
- pie: the distribution of expenses among members or categories
- bar: compare the amounts contributed by different members, or track expenses over time
- line: the remaining budget over time

Rules for the data:
- "data" is a list of objects, one per slice / bar / point
- every object has a "name" key (the label) and one numeric value key
- "options" is an object and should include a "title"

Respond with ONLY a JSON object in this exact format:
{{"chartConfigurations": [{{"type": "pie", "data": [{{"name": "Alice", "value": 500}}], "options": {{"title": "Spend by member"}}, "description": "what the chart shows"}}]}}

Use only the numbers above. Do not invent expenses."""


def parse_response(text: str) -> list[ChartConfiguration]:
    """
    Extract and validate the JSON object in a model reply.

    Raises:
        GenerationFailure: If there is no JSON object or it does not
            match the response schema
    """
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise GenerationFailure("Model reply contained no JSON object")

    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise GenerationFailure(f"Model reply was not valid JSON: {e}") from e

    try:
        response = ChartConfigurationsResponse.model_validate(data)
    except ValidationError as e:
        raise GenerationFailure(f"Model reply did not match the chart schema: {e}") from e

    return response.chart_configurations


class ChartInsightAgent:
    """
    AI agent for chart suggestions.

    RESPONSIBILITIES:
    - Turn (overall budget, expenses) into chart configurations

    BOUNDARIES:
    - NEVER reads or writes storage
    - ALWAYS validates the reply before returning it
    """

    def __init__(self, settings: GeminiSettings, model: Optional[object] = None):
        self._settings = settings
        self._model = model or self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
                "response_mime_type": "application/json",
            }
        )

    async def generate_charts(self, request: ChartRequest) -> list[ChartConfiguration]:
        """
        Ask the model for chart configurations.

        Raises:
            GenerationFailure: On any transport or parsing problem
        """
        prompt = build_prompt(request)

        try:
            response = await self._model.generate_content_async(prompt)
            text = response.text
        except Exception as e:
            raise GenerationFailure(f"Gemini call failed: {e}") from e

        if not text or not text.strip():
            raise GenerationFailure("Model returned an empty reply")

        return parse_response(text.strip())
