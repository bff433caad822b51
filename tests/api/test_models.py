"""Unit tests for src/api/models.py"""

import pytest

from src.api.models import (
    CreateRoomRequest,
    GameStateResponse,
    JoinRoomRequest,
    PlayerResponse,
    TurnResultResponse,
    VoteRequest,
    VoteResponse,
)
from src.connect_four.board import Board
from src.connect_four.cell import Cell, LastMove
from src.connect_four.game_state import GameResult, GameState
from src.connect_four.turn_manager import TurnResult, VoteResult
from src.core.exceptions import InvalidRequestError
from src.core.models import Player
from src.core.shared_types import Team, VoteRejection


# -- Validation - CreateRoomRequest --
def test_timer_is_optional() -> None:
    assert CreateRoomRequest().timer_sec is None


@pytest.mark.parametrize("timer_sec", [5, 15, 120])
def test_valid_timer(timer_sec: int) -> None:
    assert CreateRoomRequest(timer_sec=timer_sec).timer_sec == timer_sec


@pytest.mark.parametrize("timer_sec", [0, 4, 121, -10])
def test_timer_out_of_range(timer_sec: int) -> None:
    with pytest.raises(InvalidRequestError):
        _ = CreateRoomRequest(timer_sec=timer_sec)


# -- Validation - JoinRoomRequest --
def test_nickname_whitespace_is_collapsed() -> None:
    request = JoinRoomRequest(room_code=" abc123 ", nickname="  dont   hate ")
    assert request.nickname == "dont hate"
    assert request.room_code == "ABC123"


@pytest.mark.parametrize(
    "nickname",
    [
        "",  # empty
        "    ",  # only whitespace
        "x" * 21,  # too long
        "<script>",  # markup characters
        "semi;colon",
        "Zoë",  # ASCII only
        "名前",
    ],
)
def test_invalid_nickname(nickname: str) -> None:
    with pytest.raises(InvalidRequestError):
        _ = JoinRoomRequest(room_code="ABC123", nickname=nickname)


@pytest.mark.parametrize("nickname", ["Ada", "player_1", "Jean-Luc", "Dr. Who", "x" * 20])
def test_valid_nickname(nickname: str) -> None:
    assert JoinRoomRequest(room_code="ABC123", nickname=nickname).nickname == nickname


def test_vote_request_column_is_int() -> None:
    assert VoteRequest(room_code="ABC123", column="3").column == 3  # type: ignore[arg-type]


# -- Responses --
def test_game_state_response_hides_votes() -> None:
    board, row = Board.empty().apply_move(2, Team.RED)
    state = GameState(
        board=board,
        current_team=Team.YELLOW,
        round=2,
        votes={"p4": 1},
        ends_at=12345,
        last_move=LastMove(2, row, Team.RED),
    )
    response = GameStateResponse.from_state(state)

    assert response.board[5][2] == Team.RED
    assert response.board[0] == [None] * 7
    assert response.current_team == Team.YELLOW
    assert response.ends_at == 12345
    assert response.last_move is not None
    assert (response.last_move.column, response.last_move.row) == (2, 5)
    assert response.result is None
    assert "votes" not in response.model_dump()


def test_game_state_response_with_winning_line() -> None:
    line = [Cell(0, 5), Cell(1, 5), Cell(2, 5), Cell(3, 5)]
    state = GameState.new_game()
    state.result = GameResult(winner=Team.RED, winning_line=line)

    response = GameStateResponse.from_state(state)

    assert response.result is not None
    assert response.result.winner == Team.RED
    assert response.result.winning_line is not None
    assert [(c.column, c.row) for c in response.result.winning_line] == [(0, 5), (1, 5), (2, 5), (3, 5)]


def test_player_response() -> None:
    player = Player(id="p1", nickname="Ada", team=Team.RED, is_admin=True, matching_votes=3)
    response = PlayerResponse.from_player(player)
    assert response.model_dump() == {
        "id": "p1",
        "nickname": "Ada",
        "team": Team.RED,
        "is_admin": True,
        "matching_votes": 3,
        "connected": True,
    }


def test_vote_response_carries_reason() -> None:
    response = VoteResponse.from_result(VoteResult(False, VoteRejection.COLUMN_FULL))
    assert not response.success
    assert response.rejection == VoteRejection.COLUMN_FULL
    assert response.error == "Column is full"


def test_turn_result_response() -> None:
    response = TurnResultResponse.from_result(TurnResult(move_applied=True, game_ended=False, chosen_column=4))
    assert response.chosen_column == 4
    assert response.error is None
