"""Protocol repository (rooms only live in process memory, but the Service does not need to know that)"""

from typing import Protocol

from src.core.models import Room, RoomCode


class RoomRepository(Protocol):
    """Persistence layer orchestration"""

    def get_room(self, code: RoomCode) -> Room | None:
        """Get room by code, if record exists."""
        ...

    def create_room(self, room: Room) -> Room:
        """Store a new room. Raises RepositoryError if the code is taken."""
        ...

    def update_room(self, room: Room) -> Room | None:
        """Replace the record of an existing room."""
        ...

    def delete_room(self, code: RoomCode) -> Room | None:
        """Remove a room's record."""
        ...

    def list_codes(self) -> list[RoomCode]:
        """Codes of all stored rooms."""
        ...
