"""Requests, Responses and Events"""

import re
from typing import Literal, Optional, Self

from pydantic import BaseModel, field_validator

from src.connect_four.cell import Cell
from src.connect_four.game_state import GameState
from src.connect_four.turn_manager import TurnResult, VoteResult
from src.core.exceptions import InvalidRequestError
from src.core.models import Player, Room
from src.core.shared_types import RoomState, Team, VoteRejection

NICKNAME_MAX_LENGTH = 20
NICKNAME_PATTERN = re.compile(r"^[A-Za-z0-9 _.\-]+$")
TIMER_RANGE_SEC = (5, 120)


# --- REQUEST MODELS ---
class CreateRoomRequest(BaseModel):
    timer_sec: Optional[int] = None

    @field_validator("timer_sec")
    @classmethod
    def validate_timer(cls, value: Optional[int]) -> Optional[int]:
        if value is None:
            return value
        low, high = TIMER_RANGE_SEC
        if not low <= value <= high:
            raise InvalidRequestError(f"Timer must be between {low} and {high} seconds, got {value}.")
        return value


class JoinRoomRequest(BaseModel):
    room_code: str
    nickname: str

    @field_validator("room_code")
    @classmethod
    def normalise_room_code(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("nickname")
    @classmethod
    def validate_nickname(cls, value: str) -> str:
        nickname = " ".join(value.split())
        if not nickname:
            raise InvalidRequestError("Nickname cannot be empty.")
        if len(nickname) > NICKNAME_MAX_LENGTH:
            raise InvalidRequestError(f"Nickname can be at most {NICKNAME_MAX_LENGTH} characters.")
        if not NICKNAME_PATTERN.match(nickname):
            raise InvalidRequestError(f"Nickname {nickname!r} contains invalid characters.")
        return nickname


class VoteRequest(BaseModel):
    room_code: str
    column: int


# --- RESPONSE MODELS ---
class CellResponse(BaseModel):
    column: int
    row: int

    @classmethod
    def from_cell(cls, cell: Cell) -> Self:
        return cls(column=cell.column, row=cell.row)


class LastMoveResponse(BaseModel):
    column: int
    row: int
    team: Team


class GameResultResponse(BaseModel):
    winner: Optional[Team] = None
    draw: bool = False
    winning_line: Optional[list[CellResponse]] = None


class PlayerResponse(BaseModel):
    id: str
    nickname: str
    team: Team
    is_admin: bool
    matching_votes: int
    connected: bool

    @classmethod
    def from_player(cls, player: Player) -> Self:
        return cls(
            id=player.id,
            nickname=player.nickname,
            team=player.team,
            is_admin=player.is_admin,
            matching_votes=player.matching_votes,
            connected=player.connected,
        )


class GameStateResponse(BaseModel):
    board: list[list[Optional[Team]]]
    current_team: Team
    round: int
    per_column_counts: list[int]
    ends_at: Optional[int]
    last_move: Optional[LastMoveResponse]
    result: Optional[GameResultResponse]

    @classmethod
    def from_state(cls, state: GameState) -> Self:
        last_move = (
            LastMoveResponse(
                column=state.last_move.column,
                row=state.last_move.row,
                team=state.last_move.team,
            )
            if state.last_move
            else None
        )
        result = None
        if state.result is not None:
            line = state.result.winning_line
            result = GameResultResponse(
                winner=state.result.winner,
                draw=state.result.draw,
                winning_line=[CellResponse.from_cell(c) for c in line] if line else None,
            )
        # votes are not part of the snapshot
        return cls(
            board=[list(row) for row in state.board.grid],
            current_team=state.current_team,
            round=state.round,
            per_column_counts=list(state.per_column_counts),
            ends_at=state.ends_at,
            last_move=last_move,
            result=result,
        )


class RoomResponse(BaseModel):
    code: str
    state: RoomState
    timer_sec: int
    max_players: int
    players: list[PlayerResponse]
    game: Optional[GameStateResponse]

    @classmethod
    def from_room(cls, room: Room) -> Self:
        return cls(
            code=room.code,
            state=room.state,
            timer_sec=room.settings.timer_sec,
            max_players=room.settings.max_players,
            players=[PlayerResponse.from_player(p) for p in room.players],
            game=GameStateResponse.from_state(room.game) if room.game else None,
        )


class CreateRoomResponse(BaseModel):
    room_code: str
    timer_sec: int
    max_players: int


class JoinRoomResponse(BaseModel):
    room: RoomResponse
    player: PlayerResponse


class VoteResponse(BaseModel):
    success: bool
    rejection: Optional[VoteRejection] = None
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: VoteResult) -> Self:
        return cls(success=result.success, rejection=result.rejection, error=result.error)


class TurnResultResponse(BaseModel):
    move_applied: bool
    game_ended: bool
    chosen_column: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: TurnResult) -> Self:
        return cls(
            move_applied=result.move_applied,
            game_ended=result.game_ended,
            chosen_column=result.chosen_column,
            error=result.error,
        )


# --- EVENT MODELS (pushed to the transport layer) ---
class VoteUpdateEvent(BaseModel):
    type: Literal["vote_update"] = "vote_update"
    team: Team
    counts: list[int]


class TurnResolvedEvent(BaseModel):
    type: Literal["turn_resolved"] = "turn_resolved"
    trigger: Literal["timeout", "quorum"]
    result: TurnResultResponse
    game: GameStateResponse


class GameEndedEvent(BaseModel):
    type: Literal["game_ended"] = "game_ended"
    outcome: Literal["red", "yellow", "draw"]
    winning_line: Optional[list[CellResponse]] = None
    scoreboard: list[PlayerResponse]


GameEvent = VoteUpdateEvent | TurnResolvedEvent | GameEndedEvent
