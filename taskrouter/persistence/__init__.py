"""Chat session persistence layer.

Provides SQLite-backed storage for chat conversations.
"""

from taskrouter.persistence.database import close_db, init_db
from taskrouter.persistence.session import ChatSessionStore, new_session

__all__ = [
    "ChatSessionStore",
    "close_db",
    "init_db",
    "new_session",
]
