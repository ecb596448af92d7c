"""
History persistence.

Explicit store objects hold the conversation log so the context window
never depends on ambient global storage.
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from ..exceptions import StorageError
from .models import Message

logger = logging.getLogger(__name__)

# The client keeps a single implicit conversation
DEFAULT_CONVERSATION_ID = "default"

# Schema version for migrations
SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Messages table, one row per stored turn
CREATE TABLE IF NOT EXISTS messages (
    conversation_id TEXT NOT NULL,
    position INTEGER NOT NULL,
    role TEXT NOT NULL,
    content TEXT NOT NULL,
    image TEXT,
    timestamp TEXT NOT NULL,
    PRIMARY KEY (conversation_id, position)
);

-- Schema metadata
CREATE TABLE IF NOT EXISTS schema_info (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class HistoryStore(ABC):
    """
    Load/save an ordered message list keyed by conversation ID.

    ``save`` replaces whatever was stored before; the list it receives
    is already trimmed by the caller.
    """

    @abstractmethod
    def load(self, conversation_id: str = DEFAULT_CONVERSATION_ID) -> list[Message]:
        """Load the stored history, oldest first."""

    @abstractmethod
    def save(
        self,
        conversation_id: str,
        messages: list[Message],
    ) -> None:
        """Replace the stored history."""

    @abstractmethod
    def clear(self, conversation_id: str = DEFAULT_CONVERSATION_ID) -> None:
        """Delete the stored history."""


class MemoryHistoryStore(HistoryStore):
    """In-process store, used when persistence is disabled and in tests."""

    def __init__(self):
        self._conversations: dict[str, list[Message]] = {}

    def load(self, conversation_id: str = DEFAULT_CONVERSATION_ID) -> list[Message]:
        return list(self._conversations.get(conversation_id, []))

    def save(self, conversation_id: str, messages: list[Message]) -> None:
        self._conversations[conversation_id] = list(messages)

    def clear(self, conversation_id: str = DEFAULT_CONVERSATION_ID) -> None:
        self._conversations.pop(conversation_id, None)


class SQLiteHistoryStore(HistoryStore):
    """
    SQLite-backed history store.

    Each save rewrites the conversation inside one transaction, so a
    reader never sees a half-written history.
    """

    def __init__(self, db_path: str | Path):
        """
        Initialize database connection.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_schema()

    def _initialize_schema(self) -> None:
        """Initialize database schema if needed."""
        with self._connection() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.execute(
                "INSERT OR REPLACE INTO schema_info (key, value) VALUES (?, ?)",
                ("schema_version", str(SCHEMA_VERSION))
            )
            conn.commit()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Get a database connection with proper cleanup."""
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=30.0)
        except sqlite3.Error as e:
            raise StorageError("connect", str(e)) from e
        try:
            yield conn
        except sqlite3.Error as e:
            raise StorageError("query", str(e)) from e
        finally:
            conn.close()

    def load(self, conversation_id: str = DEFAULT_CONVERSATION_ID) -> list[Message]:
        with self._connection() as conn:
            cursor = conn.execute(
                """
                SELECT role, content, image, timestamp FROM messages
                WHERE conversation_id = ?
                ORDER BY position ASC
                """,
                (conversation_id,),
            )
            rows = cursor.fetchall()

        try:
            return [Message.from_row(row) for row in rows]
        except (TypeError, ValueError) as e:
            logger.warning(
                "Discarding unreadable history for %r: %s", conversation_id, e
            )
            self.clear(conversation_id)
            return []

    def save(self, conversation_id: str, messages: list[Message]) -> None:
        with self._connection() as conn:
            conn.execute(
                "DELETE FROM messages WHERE conversation_id = ?",
                (conversation_id,),
            )
            conn.executemany(
                """
                INSERT INTO messages
                (conversation_id, position, role, content, image, timestamp)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        conversation_id,
                        position,
                        msg.role,
                        msg.content,
                        msg.image,
                        msg.timestamp.isoformat(),
                    )
                    for position, msg in enumerate(messages)
                ],
            )
            conn.commit()
        logger.debug("Saved %d messages for %r", len(messages), conversation_id)

    def clear(self, conversation_id: str = DEFAULT_CONVERSATION_ID) -> None:
        with self._connection() as conn:
            conn.execute(
                "DELETE FROM messages WHERE conversation_id = ?",
                (conversation_id,),
            )
            conn.commit()
