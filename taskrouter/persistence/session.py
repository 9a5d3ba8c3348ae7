"""Chat session store: load, append, save and delete conversations.

Wraps the chat_sessions table with ChatSessionRecord serialization. A
session that is missing, or whose stored row can no longer be decoded, is
replaced by a fresh one instead of failing the chat turn.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime

import aiosqlite
from pydantic import ValidationError

from taskrouter.schemas.session import ChatSessionRecord
from taskrouter.schemas.task import ChatMessage, ChatRole

logger = logging.getLogger(__name__)

_INIT_MESSAGE = "Chat session initialized"


class ChatSessionStore:
    """Persistent chat session store backed by SQLite.

    All methods are async and operate on an aiosqlite connection
    initialized by database.init_db(). Writes are last-write-wins per
    session id; there is no per-session lock.
    """

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def load(self, session_id: str, user_id: str = "") -> ChatSessionRecord:
        """Load a session, creating (and saving) a fresh one when needed.

        Args:
            session_id: Session to load.
            user_id: Owner recorded on a newly created session.

        Returns:
            The stored session, or a new one seeded with a system message
            when the session is missing or its row is corrupt.
        """
        self._db.row_factory = aiosqlite.Row
        async with self._db.execute(
            "SELECT * FROM chat_sessions WHERE session_id = ?",
            (session_id,),
        ) as cursor:
            row = await cursor.fetchone()

        if row is not None:
            try:
                return _row_to_record(row)
            except (ValueError, ValidationError) as exc:
                # json.JSONDecodeError is a ValueError
                logger.warning("Session %s is corrupt, recreating: %s", session_id, exc)

        record = new_session(session_id, user_id)
        await self.save(record)
        logger.info("Created chat session %s", session_id)
        return record

    async def append(
        self,
        session_id: str,
        role: ChatRole | str,
        content: str,
    ) -> ChatSessionRecord:
        """Append one message to a session's history and persist it.

        Returns:
            The updated session record.
        """
        record = await self.load(session_id)
        record.history.append(
            ChatMessage(role=ChatRole(role), content=content, timestamp=_now().isoformat())
        )
        await self.save(record)
        return record

    async def save(self, record: ChatSessionRecord) -> None:
        """Write a session record, replacing any stored row with the same id."""
        record.updated_at = _now()
        await self._db.execute(
            """
            INSERT OR REPLACE INTO chat_sessions
                (session_id, user_id, history_json, context_json,
                 created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                record.session_id,
                record.user_id,
                json.dumps([m.model_dump(mode="json") for m in record.history]),
                json.dumps(record.context),
                record.created_at.isoformat(),
                record.updated_at.isoformat(),
            ),
        )
        await self._db.commit()
        logger.debug("Saved chat session %s (%d messages)", record.session_id, len(record.history))

    async def delete(self, session_id: str) -> bool:
        """Delete a session. Returns True if a row was removed."""
        cursor = await self._db.execute(
            "DELETE FROM chat_sessions WHERE session_id = ?",
            (session_id,),
        )
        await self._db.commit()
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Deleted chat session %s", session_id)
        return deleted


def new_session(session_id: str, user_id: str = "") -> ChatSessionRecord:
    """Build a fresh session seeded with the initialization system message."""
    now = _now()
    return ChatSessionRecord(
        session_id=session_id,
        user_id=user_id,
        history=[
            ChatMessage(role=ChatRole.SYSTEM, content=_INIT_MESSAGE, timestamp=now.isoformat()),
        ],
        created_at=now,
        updated_at=now,
    )


def _row_to_record(row: aiosqlite.Row) -> ChatSessionRecord:
    return ChatSessionRecord(
        session_id=row["session_id"],
        user_id=row["user_id"],
        history=json.loads(row["history_json"]),
        context=json.loads(row["context_json"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _now() -> datetime:
    return datetime.now(UTC)
