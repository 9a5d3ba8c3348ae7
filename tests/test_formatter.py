"""Tests for taskrouter.chat.formatter — chat display of task results."""

from taskrouter.chat.formatter import format_task_response
from taskrouter.schemas.messages import DocumentInfo, ProviderResult


class TestFormatTaskResponse:
    def test_string_passthrough(self):
        assert format_task_response("already text") == "already text"

    def test_reasoning_steps(self):
        result = ProviderResult(
            content="4", model="m", reasoning=["add", "check"], display_format="reasoning",
        )
        assert format_task_response(result) == (
            "**Reasoning Analysis**\n\n1. add\n2. check\n\n**Conclusion**\n4"
        )

    def test_reasoning_by_task_type(self):
        result = ProviderResult(content="yes", model="m", reasoning="because")
        assert format_task_response(result, "reasoning") == (
            "**Reasoning Analysis**\n\nbecause\n\n**Conclusion**\nyes"
        )

    def test_reasoning_field_alone_is_not_enough(self):
        result = ProviderResult(content="yes", model="m", reasoning="because")
        assert format_task_response(result) == "yes"

    def test_document(self):
        result = ProviderResult(
            content="ignored", model="m",
            document=DocumentInfo(id="1", title="Plan", url="file:///docs/plan.md"),
        )
        assert format_task_response(result, "document_creation") == (
            'Document created successfully: "Plan"\n\n'
            "You can access it here: file:///docs/plan.md"
        )

    def test_data_analysis_charts(self):
        result = ProviderResult(content="Up 5%", model="m", charts=["sales.png", "trend.png"])
        assert format_task_response(result, "data_analysis") == (
            "**Data Analysis Results**\n\nUp 5%\n\n**Charts**\n- sales.png\n- trend.png"
        )

    def test_plain_content(self):
        assert format_task_response(ProviderResult(content="done", model="m")) == "done"

    def test_empty_content_dumps_result(self):
        text = format_task_response(ProviderResult(content="", model="m"), None)
        assert text.startswith("Task completed successfully.\n\nResult: {")
        assert '"model": "m"' in text
