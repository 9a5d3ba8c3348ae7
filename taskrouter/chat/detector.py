"""Lightweight chat-vs-task classifier.

Recognizes, in order: explicit task markup (``<<TASK>>``, ``[[TASK:type]]``,
a leading ``/task``), slash commands (``/create-document``, ``/analyze``,
``/reason``, ...) and a handful of fixed phrasings such as "create a
document titled '...'". Anything else is plain chat.
"""

from __future__ import annotations

import re
from typing import Any

from taskrouter.schemas.session import DetectionResult

# ── Task types ────────────────────────────────────────────────

DOCUMENT_CREATION = "document_creation"
DATA_ANALYSIS = "data_analysis"
REASONING = "reasoning"
EXPLICIT = "explicit"

# ── Patterns ──────────────────────────────────────────────────

_MARKER_RE = re.compile(
    r"<<TASK(?::([a-z_]+))?>>|\[\[TASK(?::([a-z_]+))?\]\]",
    re.IGNORECASE,
)
_TASK_COMMAND_RE = re.compile(r"^\s*/task\b", re.IGNORECASE)
_COMMAND_RE = re.compile(r"^/([a-z][a-z0-9_-]*)(?:\s+(.*))?$", re.IGNORECASE | re.DOTALL)

_DOCUMENT_RE = re.compile(
    r"^(?:create|make|generate)\s+(?:a|new)\s+document\b"
    r"(?:\s+(?:titled|called|named)\s+[\"'](.+?)[\"'])?",
    re.IGNORECASE,
)
_DATA_RE = re.compile(
    r"^(?:analyze|examine|study)\s+(?:this|the|my|following)\s+data",
    re.IGNORECASE,
)
_REASONING_RES = (
    re.compile(r"\bsolve\s+(?:this\s+)?problem", re.IGNORECASE),
    re.compile(r"\bexplain\s+step\s+by\s+step", re.IGNORECASE),
)

_TITLE_ARG_RE = re.compile(r"Title:\s*[\"'](.+?)[\"']", re.IGNORECASE)
_CONTENT_ARG_RE = re.compile(r"Content:\s*[\"'](.+?)[\"']", re.IGNORECASE | re.DOTALL)
_DATASET_ARG_RE = re.compile(r"dataset:\s*[\"'](.+?)[\"']", re.IGNORECASE)
_TYPE_ARG_RE = re.compile(r"type:\s*[\"'](.+?)[\"']", re.IGNORECASE)

# Slash-command aliases
_COMMAND_TYPES = {
    "create-document": DOCUMENT_CREATION,
    "document": DOCUMENT_CREATION,
    "analyze": DATA_ANALYSIS,
    "data-analysis": DATA_ANALYSIS,
    "reason": REASONING,
    "reasoning": REASONING,
}

_DEFAULT_TITLE = "Untitled Document"
_NO_CONTENT = "No content specified"


class TaskDetector:
    """Classifies a chat message as a task (with parameters) or plain chat."""

    def detect_task_intent(self, message: str) -> DetectionResult:
        """Detect whether ``message`` asks for a task.

        Args:
            message: Raw user message.

        Returns:
            DetectionResult; ``parameters`` holds the fields the task should
            be built from (``content``, ``title``, ``action``, ...).
        """
        text = message.strip()

        marker = _MARKER_RE.search(text)
        if marker or _TASK_COMMAND_RE.match(text):
            task_type = EXPLICIT
            if marker:
                task_type = (marker.group(1) or marker.group(2) or EXPLICIT).lower()
            content = _TASK_COMMAND_RE.sub("", _MARKER_RE.sub("", text)).strip()
            return DetectionResult(is_task=True, type=task_type, parameters={"content": content})

        command = _COMMAND_RE.match(text)
        if command:
            name = command.group(1).lower()
            args = (command.group(2) or "").strip()
            return _command_result(name, args)

        document = _DOCUMENT_RE.match(text)
        if document:
            title = document.group(1)
            return DetectionResult(
                is_task=True,
                type=DOCUMENT_CREATION,
                parameters={
                    "action": "create_document",
                    "title": title or _DEFAULT_TITLE,
                    "content": _content_after_title(text, title),
                },
            )

        if _DATA_RE.match(text):
            return DetectionResult(
                is_task=True,
                type=DATA_ANALYSIS,
                parameters={"action": "analyze_data", "content": text},
            )

        if any(pattern.search(text) for pattern in _REASONING_RES):
            return DetectionResult(is_task=True, type=REASONING, parameters={"content": text})

        return DetectionResult()


def _command_result(name: str, args: str) -> DetectionResult:
    task_type = _COMMAND_TYPES.get(name)
    params: dict[str, Any] = {"content": args}

    if task_type == DOCUMENT_CREATION:
        params["action"] = "create_document"
        title = _TITLE_ARG_RE.search(args)
        content = _CONTENT_ARG_RE.search(args)
        if title:
            params["title"] = title.group(1)
        if content:
            params["content"] = content.group(1)
        elif title:
            params["content"] = _TITLE_ARG_RE.sub("", args, count=1).strip()
    elif task_type == DATA_ANALYSIS:
        dataset = _DATASET_ARG_RE.search(args)
        if dataset:
            params["dataset"] = dataset.group(1)
    elif task_type == REASONING:
        reasoning_type = _TYPE_ARG_RE.search(args)
        if reasoning_type:
            params["reasoning_type"] = reasoning_type.group(1)
    else:
        task_type = name
        params["action"] = name
        params["parameters"] = args.split()

    return DetectionResult(is_task=True, type=task_type, parameters=params)


def _content_after_title(message: str, title: str | None) -> str:
    """Pull the document body out of a "create a document titled 'X' ..." message."""
    if not title:
        return message

    match = re.search(
        rf"[\"']{re.escape(title)}[\"']\s*(?:with|containing|that says)?\s*"
        r"(?:content|text)?\s*:?\s*(.+)",
        message,
        re.IGNORECASE | re.DOTALL,
    )
    if match:
        return match.group(1).strip()

    index = message.find(title)
    if index > -1:
        rest = re.sub(r"^\W+", "", message[index + len(title):]).strip()
        return rest or _NO_CONTENT
    return _NO_CONTENT
