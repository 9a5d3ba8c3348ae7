"""Chat mode: task detection, result formatting and the session-aware service."""

from taskrouter.chat.detector import TaskDetector
from taskrouter.chat.formatter import format_task_response
from taskrouter.chat.service import ChatService

__all__ = [
    "ChatService",
    "TaskDetector",
    "format_task_response",
]
