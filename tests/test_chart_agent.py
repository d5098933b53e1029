"""
Tests for the AI chart suggestion agent.

A stub model replaces Gemini; no API calls are made.
"""

import asyncio
import json

import pytest

from tripbudget.agents import (
    GENERIC_FAILURE_MESSAGE,
    ChartInsightAgent,
    GenerationFailure,
    build_prompt,
    parse_response,
)
from tripbudget.config import GeminiSettings
from tripbudget.models.charts import ChartConfiguration, ChartExpense, ChartRequest
from tripbudget.visualization import chart_points, create_ai_chart


class StubResponse:
    def __init__(self, text):
        self.text = text


class StubModel:
    """Mimics GenerativeModel.generate_content_async."""

    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.prompts = []

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return StubResponse(self.text)


VALID_REPLY = json.dumps({
    "chartConfigurations": [
        {
            "type": "pie",
            "data": [{"name": "Alice", "value": 500}, {"name": "Bob", "value": 2000}],
            "options": {"title": "Spend by member"},
            "description": "Share of spending per member",
        },
        {
            "type": "bar",
            "data": [{"name": "Day 1", "spent": 2200}],
            "options": {"title": "Daily spend"},
            "description": "Spending per day",
        },
    ]
})


@pytest.fixture
def request_():
    return ChartRequest(
        overall_budget=2400.0,
        expenses=[
            ChartExpense(member="Alice", amount=200.0, purpose="Gas", timestamp="2024-05-01T09:00:00+00:00"),
            ChartExpense(member="Bob", amount=2000.0, purpose="Homestay", timestamp="2024-05-01T10:00:00+00:00"),
        ],
    )


def make_agent(model):
    return ChartInsightAgent(GeminiSettings(api_key="test-key"), model=model)


class TestPrompt:

    def test_prompt_contains_budget_and_expenses(self, request_):
        prompt = build_prompt(request_)

        assert "Overall Budget: 2400.0" in prompt
        assert "Member: Bob, Amount: 2000.0, Purpose: Homestay" in prompt
        assert "chartConfigurations" in prompt

    def test_prompt_without_expenses(self):
        prompt = build_prompt(ChartRequest(overall_budget=0.0))
        assert "(no expenses logged yet)" in prompt


class TestParseResponse:

    def test_valid_reply(self):
        charts = parse_response(VALID_REPLY)

        assert [c.kind for c in charts] == ["pie", "bar"]
        assert charts[1].value_key() == "spent"

    def test_reply_wrapped_in_prose(self):
        charts = parse_response(f"Here you go:\n```json\n{VALID_REPLY}\n```")
        assert len(charts) == 2

    def test_empty_chart_list_is_valid(self):
        assert parse_response('{"chartConfigurations": []}') == []

    def test_no_json(self):
        with pytest.raises(GenerationFailure):
            parse_response("Sorry, I cannot help with that.")

    def test_broken_json(self):
        with pytest.raises(GenerationFailure):
            parse_response('{"chartConfigurations": [}')

    def test_schema_violation(self):
        """Test that a chart without a type is rejected."""
        with pytest.raises(GenerationFailure):
            parse_response('{"chartConfigurations": [{"description": "no type"}]}')

    def test_missing_key(self):
        with pytest.raises(GenerationFailure):
            parse_response('{"charts": []}')


class TestChartInsightAgent:

    def test_generate_charts(self, request_):
        model = StubModel(text=VALID_REPLY)
        charts = asyncio.run(make_agent(model).generate_charts(request_))

        assert len(charts) == 2
        assert "Homestay" in model.prompts[0]

    def test_transport_error(self, request_):
        agent = make_agent(StubModel(error=RuntimeError("503 Service Unavailable")))

        with pytest.raises(GenerationFailure) as exc:
            asyncio.run(agent.generate_charts(request_))

        assert str(exc.value) == GENERIC_FAILURE_MESSAGE
        assert "503" in exc.value.reason

    def test_empty_reply(self, request_):
        with pytest.raises(GenerationFailure):
            asyncio.run(make_agent(StubModel(text="  ")).generate_charts(request_))

    def test_malformed_reply(self, request_):
        with pytest.raises(GenerationFailure):
            asyncio.run(make_agent(StubModel(text="not json")).generate_charts(request_))


class TestChartRendering:
    """AI chart data is untrusted; rendering must not raise."""

    def test_points_skip_non_numeric_values(self):
        chart = ChartConfiguration(
            type="bar",
            data=[{"name": "A", "value": 10}, {"name": "B", "value": "n/a"}, {"name": "C", "value": "5"}],
            description="x",
        )
        assert chart_points(chart) == (["A", "C"], [10.0, 5.0])

    def test_empty_data_renders_placeholder(self):
        chart = ChartConfiguration(type="line", data=[], options={"title": "Trend"}, description="x")
        figure = create_ai_chart(chart)

        assert figure is not None
        assert len(figure.data) == 0

    def test_unsupported_type(self):
        chart = ChartConfiguration(type="radar", data=[{"name": "A", "value": 1}], description="x")
        assert create_ai_chart(chart) is None

    def test_pie_chart(self):
        charts = parse_response(VALID_REPLY)
        figure = create_ai_chart(charts[0])

        assert figure.data[0].type == "pie"
        assert list(figure.data[0].values) == [500.0, 2000.0]
