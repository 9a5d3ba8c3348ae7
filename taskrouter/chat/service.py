"""Chat-mode front end to the orchestrator.

Each incoming message is recorded in its session, classified as chat or
task, and answered: tasks run through the full ``process_task`` pipeline
(with the recent conversation as context) and are formatted for display,
plain chat is routed on complexity alone.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping, Sequence
from typing import Any

from taskrouter.chat.detector import REASONING, TaskDetector
from taskrouter.chat.formatter import format_task_response
from taskrouter.orchestrator import RoutingOrchestrator
from taskrouter.persistence.session import ChatSessionStore
from taskrouter.schemas.session import ChatResponse, DetectionResult, UnifiedResult
from taskrouter.schemas.task import ChatMessage, ChatRole, Task, TaskContext

logger = logging.getLogger(__name__)


class ChatService:
    """Session-aware chat processing on top of a RoutingOrchestrator."""

    def __init__(
        self,
        orchestrator: RoutingOrchestrator,
        sessions: ChatSessionStore,
        detector: TaskDetector | None = None,
        *,
        history_window: int = 6,
        history_truncate: int = 500,
    ) -> None:
        self._orchestrator = orchestrator
        self._sessions = sessions
        self._detector = detector or TaskDetector()
        self._history_window = history_window
        self._history_truncate = history_truncate

    async def process_chat_message(
        self,
        user_id: str,
        session_id: str | None,
        message: str | Mapping[str, Any],
        attachments: Sequence[Mapping[str, Any]] | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> ChatResponse:
        """Answer one chat message and record the exchange in its session.

        Args:
            user_id: Owner of the session.
            session_id: Session to continue; a new one is created when None.
            message: Plain text, or a mapping with ``content`` and optional
                     ``mode`` ('chat' | 'task'), ``task_type`` and ``metadata``.
            attachments: Attached files; each should carry a ``name``.
            options: Extra call options (``task_mode``, ``priority``, ...)
                     forwarded to the task context.

        Returns:
            ChatResponse with the reply text and processing metadata.
            Processing failures are reported in the reply, not raised.

        Raises:
            RuntimeError: If the session store itself fails.
        """
        attachments = list(attachments or [])
        options = dict(options or {})
        task_mode = bool(options.pop("task_mode", options.pop("taskMode", False)))
        session_id = session_id or uuid.uuid4().hex

        content, mode, task_type, task_metadata = _unpack_message(message)

        try:
            await self._sessions.load(session_id, user_id)
            session = await self._sessions.append(session_id, ChatRole.USER, content)
        except Exception as exc:
            raise RuntimeError(f"Failed to process chat message: {exc}") from exc

        prompt = _with_attachment_note(content, attachments)

        detection = DetectionResult(
            is_task=mode == "task", type=task_type, parameters=task_metadata,
        )
        if not detection.is_task and not task_type:
            detection = self._detector.detect_task_intent(content)

        is_task = detection.is_task or task_mode
        resolved_type = detection.type or task_type
        history = session.compact_history(self._history_window, self._history_truncate)

        try:
            outcome = await self.process_unified_request(
                prompt,
                is_task=is_task,
                task_type=resolved_type,
                parameters=detection.parameters or task_metadata or {},
                history=history,
                attachments=attachments,
                options=options,
            )
            response, response_type, metadata = outcome.content, outcome.type, outcome.metadata
            if outcome.type == "task":
                await self._sessions.append(
                    session_id, ChatRole.SYSTEM, f"Task executed: {resolved_type or 'general'}",
                )
        except Exception as exc:
            logger.error("Chat processing failed for session %s: %s", session_id, exc)
            response = f"I encountered an error while processing your request: {exc}"
            response_type = "chat"
            metadata = {"status": "error", "error": str(exc)}

        try:
            await self._sessions.append(session_id, ChatRole.ASSISTANT, response)
        except Exception as exc:
            raise RuntimeError(f"Failed to process chat message: {exc}") from exc

        return ChatResponse(
            response=response,
            session_id=session_id,
            type=response_type,
            was_task=is_task,
            metadata=metadata,
        )

    async def process_unified_request(
        self,
        content: str,
        *,
        is_task: bool = False,
        task_type: str | None = None,
        parameters: Mapping[str, Any] | None = None,
        history: list[ChatMessage] | None = None,
        attachments: Sequence[Mapping[str, Any]] = (),
        options: Mapping[str, Any] | None = None,
    ) -> UnifiedResult:
        """Run a message down the task path or the chat path.

        A message is a task when flagged as one or when it carries a task
        type other than ``chat``.
        """
        if is_task or (task_type and task_type != "chat"):
            return await self._process_task_request(
                content, task_type, parameters or {}, history or [], attachments, options or {},
            )
        return await self._process_chat_request(content, history or [])

    async def _process_task_request(
        self,
        content: str,
        task_type: str | None,
        parameters: Mapping[str, Any],
        history: list[ChatMessage],
        attachments: Sequence[Mapping[str, Any]],
        options: Mapping[str, Any],
    ) -> UnifiedResult:
        logger.info("Processing as task: %s", task_type or "general")

        task = Task.model_validate({"content": content, **parameters})
        context_data: dict[str, Any] = {**options, "chat_history": history}
        if attachments:
            context_data["attachments"] = list(attachments)
        if task_type == REASONING:
            context_data.setdefault("requires_reasoning", True)
        context = TaskContext.model_validate(context_data)

        result = await self._orchestrator.process_task(task, context)
        return UnifiedResult(
            content=format_task_response(result, task_type),
            type="task",
            metadata={
                "task_type": task_type or "general",
                "model": result.model or "unknown",
                "status": "success",
            },
        )

    async def _process_chat_request(
        self, content: str, history: list[ChatMessage],
    ) -> UnifiedResult:
        logger.info("Processing as chat message")

        analysis = await self._orchestrator.analyze_only(content)
        routed = await self._orchestrator.router.route_by_complexity(
            content,
            analysis.complexity,
            self._orchestrator.thresholds,
            TaskContext(chat_history=history),
        )
        return UnifiedResult(
            content=routed.result.content,
            type="chat",
            metadata={"model": routed.model, "complexity": analysis.complexity},
        )


def _unpack_message(
    message: str | Mapping[str, Any],
) -> tuple[str, str, str | None, dict[str, Any] | None]:
    """Split a message into (content, mode, task_type, metadata)."""
    if isinstance(message, str):
        return message, "chat", None, None
    task_type = message.get("task_type", message.get("taskType"))
    metadata = message.get("metadata")
    return (
        str(message.get("content", "")),
        message.get("mode") or "chat",
        task_type,
        dict(metadata) if metadata else None,
    )


def _with_attachment_note(content: str, attachments: Sequence[Mapping[str, Any]]) -> str:
    if not attachments:
        return content
    names = ", ".join(str(a.get("name", "unnamed")) for a in attachments)
    return f"{content}\n\n[User has attached {len(attachments)} file(s): {names}]"
