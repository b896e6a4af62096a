"""
Durable chat store.

This module persists accounts, room message history, achievement unlocks and
reactions in SQLite. All connections of the server share one store; calls are
awaited from the event loop and run in submission order on a single worker
thread, so the loop never blocks on disk I/O.
"""

import asyncio
import functools
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

from common.constants import DEFAULT_DB_PATH, MAX_ROOM_HISTORY, MessageKinds
from common.protocol_definitions import Account, StoredMessage
from server.errors import StoreError
from server.utils.logger import logger


_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
  username TEXT PRIMARY KEY,
  password TEXT,
  color TEXT DEFAULT '#ff00ff',
  created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
  last_login DATETIME DEFAULT CURRENT_TIMESTAMP,
  total_messages INTEGER DEFAULT 0,
  total_time_online INTEGER DEFAULT 0
);

CREATE TABLE IF NOT EXISTS achievements (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  username TEXT NOT NULL,
  achievement TEXT NOT NULL,
  unlocked_at DATETIME DEFAULT CURRENT_TIMESTAMP,
  UNIQUE(username, achievement)
);

CREATE TABLE IF NOT EXISTS messages (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  room TEXT NOT NULL,
  username TEXT NOT NULL,
  color TEXT,
  message TEXT NOT NULL,
  message_type TEXT DEFAULT 'normal',
  timestamp TEXT NOT NULL,
  created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_messages_room_id ON messages (room, id);

CREATE TABLE IF NOT EXISTS reactions (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  message_id INTEGER NOT NULL,
  username TEXT NOT NULL,
  reaction TEXT NOT NULL,
  created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
  UNIQUE(message_id, username, reaction)
);
"""


class ChatStore:
    """
    SQLite-backed durable store.

    - Counters are bumped with relative UPDATEs, never read-modify-write
    - Achievement and reaction uniqueness is enforced by UNIQUE constraints
    - Each insert into a room prunes that room to the newest history_limit rows
      in the same transaction
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH, history_limit: int = MAX_ROOM_HISTORY):
        self.db_path = str(db_path)
        self.history_limit = history_limit
        self._conn: Optional[sqlite3.Connection] = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='chat-store')

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Open the database and create the schema. Raises StoreError on failure."""
        try:
            if self.db_path != ':memory:':
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path, check_same_thread=False, timeout=10)
            conn.row_factory = sqlite3.Row
            if self.db_path != ':memory:':
                conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(_SCHEMA)
            conn.commit()
        except (sqlite3.Error, OSError) as e:
            logger.error(f"[DATABASE] Connection failed for {self.db_path}: {e}")
            raise StoreError(f"Could not open database {self.db_path}: {e}") from e

        self._conn = conn
        logger.info(f"[DATABASE] Connected: {self.db_path}")

    def close(self) -> None:
        """Drain pending work and close the connection."""
        self._executor.shutdown(wait=True)
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("[DATABASE] Closed")

    async def _run(self, func, *args):
        if self._conn is None:
            raise StoreError("Store is not initialized")
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, functools.partial(func, *args))
        except sqlite3.Error as e:
            logger.error(f"[DATABASE] {func.__name__} failed: {e}")
            raise StoreError(str(e)) from e

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def get_account(self, username: str) -> Optional[Account]:
        return await self._run(self._get_account, username)

    def _get_account(self, username: str) -> Optional[Account]:
        row = self._conn.execute(
            "SELECT username, password, color, created_at, last_login, total_messages "
            "FROM users WHERE username = ?",
            (username,),
        ).fetchone()
        if row is None:
            return None
        return Account(
            username=row["username"],
            password=row["password"] or '',
            color=row["color"],
            created_at=row["created_at"],
            last_login=row["last_login"],
            total_messages=row["total_messages"] or 0,
        )

    async def create_account(self, username: str, password: Optional[str], color: str) -> bool:
        """Create an account. Returns False if the username is already taken."""
        return await self._run(self._create_account, username, password or '', color)

    def _create_account(self, username: str, password: str, color: str) -> bool:
        with self._conn:
            cur = self._conn.execute(
                "INSERT INTO users (username, password, color) VALUES (?, ?, ?) "
                "ON CONFLICT(username) DO NOTHING",
                (username, password, color),
            )
        return cur.rowcount == 1

    async def record_login(self, username: str) -> None:
        await self._run(self._record_login, username)

    def _record_login(self, username: str) -> None:
        with self._conn:
            self._conn.execute(
                "UPDATE users SET last_login = CURRENT_TIMESTAMP WHERE username = ?",
                (username,),
            )

    async def increment_message_count(self, username: str) -> None:
        await self._run(self._increment_message_count, username)

    def _increment_message_count(self, username: str) -> None:
        with self._conn:
            self._conn.execute(
                "UPDATE users SET total_messages = total_messages + 1 WHERE username = ?",
                (username,),
            )

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def save_message(self, room: str, username: str, color: Optional[str], message: str,
                           message_type: str, timestamp: str) -> int:
        """Persist a message and prune the room. Returns the new message id."""
        if message_type not in MessageKinds.ALL:
            raise ValueError(f"Unknown message type: {message_type}")
        return await self._run(self._save_message, room, username, color, message,
                               message_type, timestamp or '')

    def _save_message(self, room, username, color, message, message_type, timestamp) -> int:
        with self._conn:
            cur = self._conn.execute(
                "INSERT INTO messages (room, username, color, message, message_type, timestamp) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (room, username, color, message, message_type, timestamp),
            )
            self._conn.execute(
                "DELETE FROM messages WHERE room = ? AND id NOT IN ("
                "SELECT id FROM messages WHERE room = ? ORDER BY id DESC LIMIT ?)",
                (room, room, self.history_limit),
            )
        return cur.lastrowid

    async def load_history(self, room: str, limit: Optional[int] = None) -> List[StoredMessage]:
        """Return up to limit messages for a room, oldest first."""
        return await self._run(self._load_history, room, limit or self.history_limit)

    def _load_history(self, room: str, limit: int) -> List[StoredMessage]:
        rows = self._conn.execute(
            "SELECT id, room, username, color, message, message_type, timestamp, created_at "
            "FROM messages WHERE room = ? ORDER BY id DESC LIMIT ?",
            (room, limit),
        ).fetchall()
        return [StoredMessage(**dict(row)) for row in reversed(rows)]

    async def count_messages(self, room: str) -> int:
        return await self._run(self._count_messages, room)

    def _count_messages(self, room: str) -> int:
        row = self._conn.execute("SELECT COUNT(*) FROM messages WHERE room = ?", (room,)).fetchone()
        return row[0]

    # ------------------------------------------------------------------
    # Achievements
    # ------------------------------------------------------------------

    async def get_achievements(self, username: str) -> List[str]:
        return await self._run(self._get_achievements, username)

    def _get_achievements(self, username: str) -> List[str]:
        rows = self._conn.execute(
            "SELECT achievement FROM achievements WHERE username = ? ORDER BY id",
            (username,),
        ).fetchall()
        return [row["achievement"] for row in rows]

    async def unlock_achievement(self, username: str, achievement: str) -> bool:
        """Record an unlock. Returns True only for the call that inserted the row."""
        unlocked = await self._run(self._unlock_achievement, username, achievement)
        if unlocked:
            logger.log_achievement(username, achievement)
        return unlocked

    def _unlock_achievement(self, username: str, achievement: str) -> bool:
        with self._conn:
            cur = self._conn.execute(
                "INSERT INTO achievements (username, achievement) VALUES (?, ?) "
                "ON CONFLICT(username, achievement) DO NOTHING",
                (username, achievement),
            )
        return cur.rowcount == 1

    # ------------------------------------------------------------------
    # Reactions
    # ------------------------------------------------------------------

    async def add_reaction(self, message_id: int, username: str, reaction: str) -> bool:
        """Record a reaction. Returns False if this user already left it."""
        return await self._run(self._add_reaction, message_id, username, reaction)

    def _add_reaction(self, message_id: int, username: str, reaction: str) -> bool:
        with self._conn:
            cur = self._conn.execute(
                "INSERT INTO reactions (message_id, username, reaction) VALUES (?, ?, ?) "
                "ON CONFLICT(message_id, username, reaction) DO NOTHING",
                (message_id, username, reaction),
            )
        return cur.rowcount == 1

    async def get_reactions(self, message_id: int) -> List[dict]:
        return await self._run(self._get_reactions, message_id)

    def _get_reactions(self, message_id: int) -> List[dict]:
        rows = self._conn.execute(
            "SELECT username, reaction FROM reactions WHERE message_id = ? ORDER BY id",
            (message_id,),
        ).fetchall()
        return [dict(row) for row in rows]
