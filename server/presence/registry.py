"""
Presence registry.

This module owns the ephemeral per-connection sessions.
"""

import random
import time
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple

from common.constants import (
    DEFAULT_COLOR, DEFAULT_ROOM, GUEST_PREFIX, GUEST_SUFFIX_MAX, MIN_USERNAME_LENGTH, STATUSES
)
from server.chat.content_filter import sanitize_input
from server.errors import ValidationError


@dataclass
class Session:
    """Ephemeral state for one live connection."""
    uid: int
    username: Optional[str] = None
    color: str = DEFAULT_COLOR
    status: str = STATUSES[0]
    room: str = DEFAULT_ROOM
    is_guest: bool = False
    rooms_visited: Set[str] = field(default_factory=lambda: {DEFAULT_ROOM})
    message_count: int = 0
    joined_at: float = field(default_factory=time.time)
    last_message_at: Optional[float] = None  # monotonic clock

    @property
    def logged_in(self) -> bool:
        return self.username is not None


def make_guest_name() -> str:
    """Synthesize a guest name. Collisions are possible and tolerated."""
    return f"{GUEST_PREFIX}{random.randint(0, GUEST_SUFFIX_MAX)}"


def validate_username(username: Optional[str], is_guest: bool) -> str:
    """Return the sanitized username or raise ValidationError."""
    name = sanitize_input(username or '')
    if not name:
        raise ValidationError("Username is required")
    if not is_guest and len(name) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters")
    return name


class PresenceRegistry:
    """Maps live connection ids to their sessions."""

    def __init__(self):
        self._sessions: Dict[int, Session] = {}

    def register(self, uid: int) -> Session:
        """Create the session for a freshly opened connection."""
        session = Session(uid=uid)
        self._sessions[uid] = session
        return session

    def get(self, uid: int) -> Optional[Session]:
        return self._sessions.get(uid)

    def complete_login(self, uid: int, username: str, color: Optional[str], is_guest: bool) -> Session:
        """
        Bind a username to a session.

        Validation happens before any field is touched, so a failed login
        leaves the session exactly as it was.
        """
        session = self._sessions.get(uid)
        if session is None:
            raise ValidationError(f"No session for connection {uid}")
        name = validate_username(username, is_guest)

        session.username = name
        session.color = color or DEFAULT_COLOR
        session.is_guest = is_guest
        return session

    def find_by_username(self, username: str) -> Optional[int]:
        """Return the connection id of the logged-in session holding username."""
        for uid, session in self._sessions.items():
            if session.username is not None and session.username == username:
                return uid
        return None

    def reset_login(self, uid: int):
        """Return a session to its pre-login state."""
        session = self._sessions.get(uid)
        if session is None:
            return
        session.username = None
        session.color = DEFAULT_COLOR
        session.is_guest = False
        session.room = DEFAULT_ROOM
        session.rooms_visited = {DEFAULT_ROOM}

    def rename(self, uid: int, new_name: str) -> str:
        """Change the session's username, returning the old one."""
        session = self._sessions[uid]
        old_name = session.username
        session.username = new_name
        return old_name

    def remove(self, uid: int) -> Optional[Session]:
        """Detach and return the session of a closed connection."""
        return self._sessions.pop(uid, None)

    def items(self) -> List[Tuple[int, Session]]:
        """Snapshot of (uid, session) pairs."""
        return list(self._sessions.items())

    def online_count(self) -> int:
        """Number of sessions that completed login."""
        return sum(1 for s in self._sessions.values() if s.logged_in)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, uid: int) -> bool:
        return uid in self._sessions

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._sessions))
