"""Display formatting for task results shown in chat."""

from __future__ import annotations

from taskrouter.chat.detector import DATA_ANALYSIS, DOCUMENT_CREATION, REASONING
from taskrouter.schemas.messages import ProviderResult


def format_task_response(result: ProviderResult | str, task_type: str | None = "general") -> str:
    """Render a task result as chat display text.

    Reasoning results get their steps listed above the conclusion, created
    documents a link, data analyses their chart references. Anything else
    shows its content, or the whole result as JSON when it has none.
    """
    if isinstance(result, str):
        return result

    if result.reasoning and (result.display_format == "reasoning" or task_type == REASONING):
        return (
            f"**Reasoning Analysis**\n\n{_format_steps(result.reasoning)}"
            f"\n\n**Conclusion**\n{result.content}"
        )

    if task_type == DOCUMENT_CREATION and result.document:
        return (
            f'Document created successfully: "{result.document.title}"\n\n'
            f"You can access it here: {result.document.url}"
        )

    if task_type == DATA_ANALYSIS and result.charts:
        charts = "\n".join(f"- {chart}" for chart in result.charts)
        return f"**Data Analysis Results**\n\n{result.content}\n\n**Charts**\n{charts}"

    if result.content:
        return result.content

    return f"Task completed successfully.\n\nResult: {result.model_dump_json(indent=2)}"


def _format_steps(reasoning: str | list[str]) -> str:
    if isinstance(reasoning, str):
        return reasoning
    return "\n".join(f"{i}. {step}" for i, step in enumerate(reasoning, 1))
