"""
Boundary layer data model(s).

The roster of players is owned by the Service (room orchestration) and handed by reference to the domain layer.
The domain layer only ever touches `matching_votes`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from src.core.shared_types import RoomState, Team

if TYPE_CHECKING:
    from src.connect_four.game_state import GameState

# Type aliases to make the models easier to read
PlayerId = str
RoomCode = str


@dataclass
class Player:
    id: PlayerId  # bound to a connection
    nickname: str
    team: Team
    is_admin: bool = False
    matching_votes: int = 0
    connected: bool = True


@dataclass
class RoomSettings:
    timer_sec: int
    max_players: int


@dataclass
class Room:
    """Room record as it is kept by the repository. `game` is the GameState of the running (or last) game."""

    code: RoomCode
    settings: RoomSettings
    created_at: int  # epoch ms
    players: list[Player] = field(default_factory=list)
    state: RoomState = RoomState.LOBBY
    game: Optional[GameState] = None

    def find_player(self, player_id: PlayerId) -> Player | None:
        return next((p for p in self.players if p.id == player_id), None)
