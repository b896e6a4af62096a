"""
Room directory.

The room set is fixed at startup. Membership is advisory: members() returns a
snapshot that callers must re-read rather than hold on to.
"""

from typing import Dict, List, Mapping, Optional

from common.constants import ROOMS
from server.errors import UnknownRoomError


class Room:
    """A named channel with an immutable topic and live membership."""

    def __init__(self, name: str, topic: str):
        self.name = name
        self.topic = topic
        self.users: List[str] = []  # join order, unique

    def __repr__(self):
        return f"Room({self.name!r}, users={self.users!r})"


class RoomDirectory:
    """Owns every room and its member list."""

    def __init__(self, rooms: Optional[Mapping[str, str]] = None):
        rooms = ROOMS if rooms is None else rooms
        self._rooms: Dict[str, Room] = {name: Room(name, topic) for name, topic in rooms.items()}

    def _room(self, name: str) -> Room:
        room = self._rooms.get(name)
        if room is None:
            raise UnknownRoomError(name)
        return room

    def join(self, room: str, username: str) -> None:
        """Add username to room. No-op if already present."""
        target = self._room(room)
        if username not in target.users:
            target.users.append(username)

    def leave(self, room: str, username: str) -> None:
        """Remove username from room. No-op if absent."""
        target = self._room(room)
        if username in target.users:
            target.users.remove(username)

    def rename(self, old_name: str, new_name: str) -> List[str]:
        """Replace old_name with new_name in every room, keeping its position."""
        changed = []
        for room in self._rooms.values():
            if old_name in room.users:
                index = room.users.index(old_name)
                if new_name in room.users:
                    room.users.pop(index)
                else:
                    room.users[index] = new_name
                changed.append(room.name)
        return changed

    def members(self, room: str) -> List[str]:
        return list(self._room(room).users)

    def topic(self, room: str) -> str:
        return self._room(room).topic

    def names(self) -> List[str]:
        return list(self._rooms)

    def __contains__(self, room: str) -> bool:
        return room in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)
