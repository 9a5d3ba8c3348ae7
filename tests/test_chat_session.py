"""Tests for chat session persistence.

Covers database initialization, ChatSessionStore load/append/save/delete,
recovery from corrupt rows, and history compaction.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from taskrouter.persistence.database import close_db, init_db
from taskrouter.persistence.session import ChatSessionStore, new_session
from taskrouter.schemas.session import ChatSessionRecord
from taskrouter.schemas.task import ChatMessage, ChatRole

# ── Factories ──────────────────────────────────────────────────────


def _make_record(messages: int) -> ChatSessionRecord:
    now = datetime.now(UTC)
    return ChatSessionRecord(
        session_id="s1",
        history=[
            ChatMessage(role=ChatRole.USER, content=f"message {i}") for i in range(messages)
        ],
        created_at=now,
        updated_at=now,
    )


async def _insert_raw(db, session_id: str, history_json: str, context_json: str = "{}"):
    now = datetime.now(UTC).isoformat()
    await db.execute(
        "INSERT INTO chat_sessions VALUES (?, ?, ?, ?, ?, ?)",
        (session_id, "u1", history_json, context_json, now, now),
    )
    await db.commit()


# ── Database Initialization Tests ─────────────────────────────────


@pytest.mark.asyncio
async def test_init_db_creates_table(tmp_path):
    """init_db creates the chat_sessions table."""
    db = await init_db(str(tmp_path / "test.db"))

    async with db.execute(
        "SELECT name FROM sqlite_master WHERE type='table'"
    ) as cursor:
        tables = [row[0] for row in await cursor.fetchall()]

    assert "chat_sessions" in tables
    await close_db(db)


@pytest.mark.asyncio
async def test_init_db_wal_mode(tmp_path):
    """init_db enables WAL journal mode for file databases."""
    db = await init_db(str(tmp_path / "test.db"))

    async with db.execute("PRAGMA journal_mode") as cursor:
        row = await cursor.fetchone()
        assert row[0] == "wal"

    await close_db(db)


@pytest.mark.asyncio
async def test_init_db_creates_parent_dirs(tmp_path):
    """init_db creates parent directories if they don't exist."""
    db_path = tmp_path / "nested" / "deep" / "test.db"
    db = await init_db(str(db_path))
    assert db_path.parent.is_dir()
    await close_db(db)


@pytest.mark.asyncio
async def test_init_db_in_memory():
    """init_db accepts :memory: without touching the filesystem."""
    db = await init_db(":memory:")
    async with db.execute("SELECT COUNT(*) FROM chat_sessions") as cursor:
        assert (await cursor.fetchone())[0] == 0
    await close_db(db)


@pytest.mark.asyncio
async def test_init_db_idempotent(tmp_path):
    """init_db can be called repeatedly on the same database."""
    db_path = str(tmp_path / "test.db")
    await close_db(await init_db(db_path))
    db = await init_db(db_path)
    async with db.execute("SELECT COUNT(*) FROM chat_sessions") as cursor:
        assert (await cursor.fetchone())[0] == 0
    await close_db(db)


# ── ChatSessionStore Tests ─────────────────────────────────────────


@pytest.mark.asyncio
async def test_load_missing_session_creates_one():
    """Loading an unknown session creates and persists a seeded session."""
    db = await init_db(":memory:")
    store = ChatSessionStore(db)

    record = await store.load("new-session", "u1")

    assert record.session_id == "new-session"
    assert record.user_id == "u1"
    assert [m.role for m in record.history] == [ChatRole.SYSTEM]
    assert record.history[0].content == "Chat session initialized"
    async with db.execute("SELECT COUNT(*) FROM chat_sessions") as cursor:
        assert (await cursor.fetchone())[0] == 1

    await close_db(db)


@pytest.mark.asyncio
async def test_append_preserves_order():
    """Appended messages are stored in order, after the seed message."""
    db = await init_db(":memory:")
    store = ChatSessionStore(db)

    await store.append("s1", ChatRole.USER, "hi")
    await store.append("s1", "assistant", "hello")
    record = await store.load("s1")

    assert [(m.role, m.content) for m in record.history] == [
        (ChatRole.SYSTEM, "Chat session initialized"),
        (ChatRole.USER, "hi"),
        (ChatRole.ASSISTANT, "hello"),
    ]
    assert all(m.timestamp for m in record.history)

    await close_db(db)


@pytest.mark.asyncio
async def test_save_round_trips_context(tmp_path):
    """Session context survives a save and a reconnect."""
    db_path = str(tmp_path / "test.db")
    db = await init_db(db_path)
    record = new_session("s1", "u1")
    record.context["topic"] = "billing"
    await ChatSessionStore(db).save(record)
    await close_db(db)

    db = await init_db(db_path)
    loaded = await ChatSessionStore(db).load("s1")
    assert loaded.context == {"topic": "billing"}
    assert loaded.user_id == "u1"
    assert loaded.created_at == record.created_at
    await close_db(db)


@pytest.mark.asyncio
async def test_corrupt_history_is_recreated():
    """A row whose history is not JSON is replaced by a fresh session."""
    db = await init_db(":memory:")
    await _insert_raw(db, "broken", "{not json")
    store = ChatSessionStore(db)

    record = await store.load("broken", "u1")

    assert len(record.history) == 1
    assert record.history[0].role == ChatRole.SYSTEM
    reloaded = await store.load("broken")
    assert reloaded.history == record.history

    await close_db(db)


@pytest.mark.asyncio
async def test_invalid_history_shape_is_recreated():
    """A row whose history fails validation is replaced by a fresh session."""
    db = await init_db(":memory:")
    await _insert_raw(db, "bad-role", json.dumps([{"role": "robot", "content": "x"}]))

    record = await ChatSessionStore(db).load("bad-role")

    assert [m.content for m in record.history] == ["Chat session initialized"]
    await close_db(db)


@pytest.mark.asyncio
async def test_delete_session():
    """delete removes the row and reports whether anything was deleted."""
    db = await init_db(":memory:")
    store = ChatSessionStore(db)
    await store.load("s1")

    assert await store.delete("s1") is True
    assert await store.delete("s1") is False

    await close_db(db)


# ── History compaction ─────────────────────────────────────────────


class TestCompactHistory:
    def test_keeps_last_window(self):
        compact = _make_record(10).compact_history(window=3)
        assert [m.content for m in compact] == ["message 7", "message 8", "message 9"]

    def test_truncates_long_messages(self):
        record = _make_record(1)
        record.history[0].content = "x" * 600
        compact = record.compact_history(limit=500)
        assert compact[0].content == "x" * 500 + "..."

    def test_zero_window(self):
        assert _make_record(4).compact_history(window=0) == []

    def test_original_untouched(self):
        record = _make_record(1)
        record.history[0].content = "y" * 600
        record.compact_history(limit=10)
        assert len(record.history[0].content) == 600
