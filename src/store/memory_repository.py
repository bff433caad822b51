"""Implementation of (Room)Repository backed by a dictionary"""

import threading

from src.core.exceptions import RepositoryError
from src.core.models import Room, RoomCode


class InMemoryRoomRepository:
    """Rooms are kept for the lifetime of the process. Room codes are matched case-insensitively."""

    def __init__(self) -> None:
        self._rooms: dict[RoomCode, Room] = {}
        self._lock = threading.Lock()

    def get_room(self, code: RoomCode) -> Room | None:
        """Get room by code, if record exists."""
        with self._lock:
            return self._rooms.get(self._key(code))

    def create_room(self, room: Room) -> Room:
        """Store a new room. Raises RepositoryError if the code is taken."""
        key = self._key(room.code)
        with self._lock:
            if key in self._rooms:
                raise RepositoryError(f"Room with code={room.code!r} already exists.")
            self._rooms[key] = room
        return room

    def update_room(self, room: Room) -> Room | None:
        """Replace the record of an existing room."""
        key = self._key(room.code)
        with self._lock:
            if key not in self._rooms:
                return None
            self._rooms[key] = room
        return room

    def delete_room(self, code: RoomCode) -> Room | None:
        """Remove a room's record."""
        with self._lock:
            return self._rooms.pop(self._key(code), None)

    def list_codes(self) -> list[RoomCode]:
        with self._lock:
            return [room.code for room in self._rooms.values()]

    @staticmethod
    def _key(code: RoomCode) -> str:
        return code.strip().upper()
