"""
Type definitions used across layers
"""

from enum import StrEnum


class Team(StrEnum):
    RED = "red"
    YELLOW = "yellow"


class RoomState(StrEnum):
    LOBBY = "lobby"
    ACTIVE = "active"
    ENDED = "ended"


class VoteRejection(StrEnum):
    """Reasons a vote can be turned down. These are reported back as values, never raised."""

    WINDOW_CLOSED = "window_closed"
    PLAYER_NOT_FOUND = "player_not_found"
    WRONG_TEAM = "wrong_team"
    INVALID_COLUMN = "invalid_column"
    COLUMN_FULL = "column_full"

    @property
    def message(self) -> str:
        return VOTE_REJECTION_MESSAGES[self]


VOTE_REJECTION_MESSAGES: dict[VoteRejection, str] = {
    VoteRejection.WINDOW_CLOSED: "Voting window is closed",
    VoteRejection.PLAYER_NOT_FOUND: "Player not found",
    VoteRejection.WRONG_TEAM: "Not your team's turn",
    VoteRejection.INVALID_COLUMN: "Invalid column",
    VoteRejection.COLUMN_FULL: "Column is full",
}
