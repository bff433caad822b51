"""
State of one game of team Connect Four, from the first voting window until a result is reached.

A GameState is owned by the room it belongs to. A rematch replaces it with a brand new one.
"""

from dataclasses import dataclass, field
from typing import Optional, Self

from src.connect_four.board import Board
from src.connect_four.cell import COLUMNS, Cell, LastMove
from src.core.models import PlayerId
from src.core.shared_types import Team

STARTING_TEAM = Team.RED


@dataclass
class GameResult:
    winner: Optional[Team] = None
    draw: bool = False
    winning_line: Optional[list[Cell]] = None


@dataclass
class GameState:
    board: Board
    current_team: Team
    round: int
    # player id -> column. Only meaningful while a voting window is open (ends_at is set)
    votes: dict[PlayerId, int] = field(default_factory=dict)
    per_column_counts: list[int] = field(default_factory=lambda: [0] * COLUMNS)
    ends_at: Optional[int] = None  # epoch ms
    last_move: Optional[LastMove] = None
    result: Optional[GameResult] = None

    @classmethod
    def new_game(cls) -> Self:
        return cls(board=Board.empty(), current_team=STARTING_TEAM, round=1)

    @property
    def is_voting_open(self) -> bool:
        return self.ends_at is not None

    @property
    def is_over(self) -> bool:
        return self.result is not None
