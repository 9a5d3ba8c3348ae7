"""Tests for taskrouter.chat.service — session-aware chat and task handling."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from taskrouter.chat.service import ChatService
from taskrouter.orchestrator import OrchestrationError, RoutingOrchestrator
from taskrouter.persistence.database import close_db, init_db
from taskrouter.persistence.session import ChatSessionStore
from taskrouter.routing.engine import TaskRouter
from taskrouter.schemas.analysis import (
    ComplexityBreakdown,
    ComplexityComponents,
    ReasoningAnalysis,
    ReasoningType,
    TaskAnalysis,
)
from taskrouter.schemas.messages import DocumentInfo, ProviderResult
from taskrouter.schemas.routing import RoutingResult, ThresholdTable, Tier
from taskrouter.schemas.task import ChatRole, Priority, Task

# ── Factories ──────────────────────────────────────────────────────


def _make_analysis(complexity: int = 15) -> TaskAnalysis:
    components = ComplexityComponents(length=10, code=20, terms=10, structure=20, context=20)
    return TaskAnalysis(
        complexity=complexity,
        complexity_breakdown=ComplexityBreakdown(components=components),
        reasoning_type=ReasoningType.NONE,
        requires_stepwise=False,
        reasoning=ReasoningAnalysis(
            type=ReasoningType.NONE,
            type_confidence=0.0,
            stepwise=False,
            context_dependency=0.0,
            temporal_aspect=False,
        ),
    )


def _make_orchestrator(task_result: ProviderResult | None = None) -> MagicMock:
    orchestrator = MagicMock(spec=RoutingOrchestrator)
    orchestrator.process_task = AsyncMock(
        return_value=task_result or ProviderResult(content="task done", model="claude-sonnet"),
    )
    orchestrator.analyze_only = AsyncMock(return_value=_make_analysis(15))
    orchestrator.thresholds = ThresholdTable()
    orchestrator.router = MagicMock(spec=TaskRouter)
    orchestrator.router.route_by_complexity = AsyncMock(
        return_value=RoutingResult(
            result=ProviderResult(content="Hi!", model="gemini/gemini-1.5-flash"),
            model="gemini-flash",
            tier=Tier.GEMINI_FLASH,
        ),
    )
    return orchestrator


@pytest_asyncio.fixture
async def store():
    db = await init_db(":memory:")
    yield ChatSessionStore(db)
    await close_db(db)


def _task_call(orchestrator: MagicMock) -> tuple[Task, object]:
    orchestrator.process_task.assert_awaited_once()
    task, context = orchestrator.process_task.await_args.args
    return task, context


# ── Chat path ──────────────────────────────────────────────────────


class TestChatMessages:
    @pytest.mark.asyncio
    async def test_plain_chat_routed_by_complexity(self, store):
        orchestrator = _make_orchestrator()
        service = ChatService(orchestrator, store)

        reply = await service.process_chat_message("u1", "s1", "hello there")

        assert reply.response == "Hi!"
        assert reply.type == "chat"
        assert reply.was_task is False
        assert reply.metadata == {"model": "gemini-flash", "complexity": 15}
        orchestrator.process_task.assert_not_awaited()

        content, complexity, thresholds, context = (
            orchestrator.router.route_by_complexity.await_args.args
        )
        assert (content, complexity, thresholds) == ("hello there", 15, ThresholdTable())
        assert [m.content for m in context.chat_history] == [
            "Chat session initialized", "hello there",
        ]

    @pytest.mark.asyncio
    async def test_exchange_recorded_in_session(self, store):
        service = ChatService(_make_orchestrator(), store)

        await service.process_chat_message("u1", "s1", "hello there")

        record = await store.load("s1")
        assert [(m.role, m.content) for m in record.history] == [
            (ChatRole.SYSTEM, "Chat session initialized"),
            (ChatRole.USER, "hello there"),
            (ChatRole.ASSISTANT, "Hi!"),
        ]
        assert record.user_id == "u1"

    @pytest.mark.asyncio
    async def test_session_id_generated(self, store):
        service = ChatService(_make_orchestrator(), store)
        reply = await service.process_chat_message("u1", None, "hello")
        assert len(reply.session_id) == 32

    @pytest.mark.asyncio
    async def test_history_window_and_truncation(self, store):
        orchestrator = _make_orchestrator()
        service = ChatService(orchestrator, store, history_window=2, history_truncate=5)

        await service.process_chat_message("u1", "s1", "first message")
        await service.process_chat_message("u1", "s1", "second message")

        context = orchestrator.router.route_by_complexity.await_args.args[3]
        assert [m.content for m in context.chat_history] == ["Hi!", "secon..."]

    @pytest.mark.asyncio
    async def test_attachments_noted_in_prompt(self, store):
        orchestrator = _make_orchestrator()
        service = ChatService(orchestrator, store)

        await service.process_chat_message("u1", "s1", "look", attachments=[{"name": "a.csv"}])

        prompt = orchestrator.router.route_by_complexity.await_args.args[0]
        assert prompt == "look\n\n[User has attached 1 file(s): a.csv]"


# ── Task path ──────────────────────────────────────────────────────


class TestTaskMessages:
    @pytest.mark.asyncio
    async def test_document_request_runs_as_task(self, store):
        orchestrator = _make_orchestrator(ProviderResult(
            content="created", model="document-creation-service",
            document=DocumentInfo(id="d1", title="Plan", url="file:///docs/plan.md"),
        ))
        service = ChatService(orchestrator, store)

        reply = await service.process_chat_message(
            "u1", "s1", "Create a document titled 'Plan' with content: step one",
        )

        task, _ = _task_call(orchestrator)
        assert task.action == "create_document"
        assert task.title == "Plan"
        assert task.content == "step one"
        assert reply.type == "task"
        assert reply.was_task is True
        assert reply.response.startswith('Document created successfully: "Plan"')
        assert reply.metadata == {
            "task_type": "document_creation",
            "model": "document-creation-service",
            "status": "success",
        }

    @pytest.mark.asyncio
    async def test_task_execution_noted_in_session(self, store):
        service = ChatService(_make_orchestrator(), store)

        await service.process_chat_message("u1", "s1", "/task tidy the notes")

        record = await store.load("s1")
        assert [m.content for m in record.history][-2:] == [
            "Task executed: explicit", "task done",
        ]

    @pytest.mark.asyncio
    async def test_task_context_carries_history(self, store):
        orchestrator = _make_orchestrator()
        service = ChatService(orchestrator, store)

        await service.process_chat_message("u1", "s1", "/task tidy the notes")

        _, context = _task_call(orchestrator)
        assert context.chat_history[-1].content == "/task tidy the notes"

    @pytest.mark.asyncio
    async def test_reasoning_command_forces_reasoning(self, store):
        orchestrator = _make_orchestrator(ProviderResult(
            content="Rayleigh scattering", model="deepseek-r1",
            reasoning=["light scatters"], display_format="reasoning",
        ))
        service = ChatService(orchestrator, store)

        reply = await service.process_chat_message("u1", "s1", "/reason why is the sky blue")

        _, context = _task_call(orchestrator)
        assert context.requires_reasoning is True
        assert reply.response == (
            "**Reasoning Analysis**\n\n1. light scatters\n\n**Conclusion**\nRayleigh scattering"
        )

    @pytest.mark.asyncio
    async def test_structured_task_message(self, store):
        orchestrator = _make_orchestrator()
        service = ChatService(orchestrator, store)

        reply = await service.process_chat_message(
            "u1", "s1", {"content": "summarise this", "mode": "task", "taskType": "summary"},
        )

        task, _ = _task_call(orchestrator)
        assert task.content == "summarise this"
        assert reply.metadata["task_type"] == "summary"
        assert reply.response == "task done"

    @pytest.mark.asyncio
    async def test_task_mode_option(self, store):
        orchestrator = _make_orchestrator()
        service = ChatService(orchestrator, store)

        reply = await service.process_chat_message(
            "u1", "s1", "hello", options={"taskMode": True, "priority": "high"},
        )

        task, context = _task_call(orchestrator)
        assert task.content == "hello"
        assert context.priority == Priority.HIGH
        assert "taskMode" not in context.passthrough
        assert reply.metadata["task_type"] == "general"

    @pytest.mark.asyncio
    async def test_task_failure_reported_in_reply(self, store):
        orchestrator = _make_orchestrator()
        orchestrator.process_task.side_effect = OrchestrationError(
            "Task orchestration failed: boom",
        )
        service = ChatService(orchestrator, store)

        reply = await service.process_chat_message("u1", "s1", "/task do it")

        assert reply.response == (
            "I encountered an error while processing your request: "
            "Task orchestration failed: boom"
        )
        assert reply.metadata == {"status": "error", "error": "Task orchestration failed: boom"}
        assert reply.was_task is True
        record = await store.load("s1")
        assert record.history[-1].content == reply.response


# ── Failures and direct calls ──────────────────────────────────────


class TestSessionFailure:
    @pytest.mark.asyncio
    async def test_store_failure_raises(self):
        sessions = MagicMock(spec=ChatSessionStore)
        sessions.load = AsyncMock(side_effect=RuntimeError("db locked"))
        service = ChatService(_make_orchestrator(), sessions)

        with pytest.raises(RuntimeError, match="Failed to process chat message: db locked"):
            await service.process_chat_message("u1", "s1", "hello")


class TestProcessUnifiedRequest:
    @pytest.mark.asyncio
    async def test_chat_type_uses_chat_path(self, store):
        orchestrator = _make_orchestrator()
        result = await ChatService(orchestrator, store).process_unified_request(
            "hi", task_type="chat",
        )
        assert result.type == "chat"
        orchestrator.process_task.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_task_type_implies_task(self, store):
        orchestrator = _make_orchestrator()
        result = await ChatService(orchestrator, store).process_unified_request(
            "hi", task_type="summary", parameters={"title": "T"},
        )
        task, _ = _task_call(orchestrator)
        assert task.title == "T"
        assert result.type == "task"
