"""
Conversation State Manager — SQLite-backed, process memory only.

Responsibility:
- Store message history per session_id, tagged with the resolved domain
- Keep at most max_history_length messages per session (oldest dropped first)
- Retrieve history in chronological order

Performance:
- One persistent in-memory SQLite connection shared across threads,
  serialized by a lock

Prohibitions:
- Never alters message content
- Never persists outside the process (":memory:" only by default)
"""

import logging
import sqlite3
import threading
import uuid
from datetime import datetime

from shared.models import ConversationTurn

logger = logging.getLogger(__name__)

DEFAULT_MAX_HISTORY = 10


class ConversationManager:
    """Bounded per-session conversation history."""

    def __init__(self, max_history_length: int = DEFAULT_MAX_HISTORY, db_path: str = ":memory:"):
        self.max_history_length = max(1, max_history_length)
        self._lock = threading.Lock()
        # One connection shared by every call, guarded by the lock
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_db()

    def _init_db(self) -> None:
        """Create tables if they don't exist."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS conversations (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                turn_id TEXT NOT NULL,
                session_id TEXT NOT NULL,
                role TEXT NOT NULL,
                content TEXT NOT NULL,
                domain TEXT,
                created_at TEXT NOT NULL
            )
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_session_id
            ON conversations(session_id)
        """)
        self._conn.commit()

    def save(self, session_id: str, role: str, content: str, domain: str | None = None) -> ConversationTurn:
        """Append a message and trim the session to its bound."""
        turn = ConversationTurn(
            id=str(uuid.uuid4()),
            role=role,
            content=content,
            domain=domain,
            timestamp=datetime.now(),
        )
        with self._lock:
            self._conn.execute(
                """INSERT INTO conversations (turn_id, session_id, role, content, domain, created_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (turn.id, session_id, turn.role, turn.content, turn.domain, turn.timestamp.isoformat()),
            )
            self._conn.execute(
                """DELETE FROM conversations
                   WHERE session_id = ?
                     AND seq NOT IN (
                         SELECT seq FROM conversations
                         WHERE session_id = ?
                         ORDER BY seq DESC
                         LIMIT ?
                     )""",
                (session_id, session_id, self.max_history_length),
            )
            self._conn.commit()
        logger.debug("Saved %s message for session %s", role, session_id)
        return turn

    def get_history(self, session_id: str) -> list[ConversationTurn]:
        """Retrieve conversation history for a session, oldest first."""
        with self._lock:
            rows = self._conn.execute(
                """SELECT turn_id, role, content, domain, created_at
                   FROM conversations
                   WHERE session_id = ?
                   ORDER BY seq ASC""",
                (session_id,),
            ).fetchall()
        return [
            ConversationTurn(
                id=row["turn_id"],
                role=row["role"],
                content=row["content"],
                domain=row["domain"],
                timestamp=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    def clear_session(self, session_id: str) -> None:
        """Clear all history for a session."""
        with self._lock:
            self._conn.execute("DELETE FROM conversations WHERE session_id = ?", (session_id,))
            self._conn.commit()
        logger.info("Cleared conversation history for session %s", session_id)

    def close(self) -> None:
        """Close the persistent connection."""
        self._conn.close()
