"""The board implements all rules that only depend on the grid: where a piece lands, and whether it completed a line."""

from dataclasses import dataclass
from typing import Optional, Self

from src.connect_four.cell import COLUMNS, ROWS, WINNING_LENGTH, Cell, LastMove
from src.core.exceptions import InvalidMoveError
from src.core.shared_types import Team

CellContent = Optional[Team]
Grid = tuple[tuple[CellContent, ...], ...]

# (delta_column, delta_row) of each axis a line of four can run along
DIRECTIONS: list[tuple[int, int]] = [
    (1, 0),  # horizontal
    (0, 1),  # vertical
    (1, 1),  # diagonal, top-left to bottom-right
    (1, -1),  # diagonal, bottom-left to top-right
]


@dataclass(frozen=True)
class WinResult:
    winner: Optional[Team] = None
    winning_line: Optional[list[Cell]] = None


@dataclass(frozen=True)
class Board:
    """
    A 6x7 grid stored row-major (`grid[row][column]`).

    The board is a value: every "mutating" operation hands back a new Board and leaves this one untouched.
    """

    grid: Grid

    @classmethod
    def empty(cls) -> Self:
        return cls(tuple(tuple(None for _ in range(COLUMNS)) for _ in range(ROWS)))

    @classmethod
    def from_rows(cls, rows: list[str]) -> Self:
        """
        Build a board from a picture of it (mostly convenient in tests). One string per row, top row first:
        'R' red, 'Y' yellow, anything else empty.
        ex. ["......."] * 5 + ["RRR...."]
        """
        symbols = {"R": Team.RED, "Y": Team.YELLOW}
        if len(rows) != ROWS or any(len(row) != COLUMNS for row in rows):
            raise ValueError(f"Expected {ROWS} rows of {COLUMNS} characters.")
        return cls(tuple(tuple(symbols.get(char.upper()) for char in row) for row in rows))

    def to_rows(self) -> list[list[Optional[str]]]:
        """Plain nested lists (team names / None), top row first."""
        return [[cell.value if cell else None for cell in row] for row in self.grid]

    def cell(self, column: int, row: int) -> CellContent:
        return self.grid[row][column]

    def is_valid_move(self, column: int) -> bool:
        """A column can take a piece as long as its top cell is free. Never raises."""
        if not isinstance(column, int) or not 0 <= column < COLUMNS:
            return False
        return self.grid[0][column] is None

    def playable_columns(self) -> list[int]:
        return [column for column in range(COLUMNS) if self.is_valid_move(column)]

    def is_full(self) -> bool:
        return all(self.grid[0][column] is not None for column in range(COLUMNS))

    def apply_move(self, column: int, team: Team) -> tuple[Self, int]:
        """Drop a piece in the column. Returns the new board and the row the piece landed on."""
        if not self.is_valid_move(column):
            raise InvalidMoveError(f"Invalid move: column {column}")

        # gravity: scan from the bottom row upwards for the first free cell
        target_row = next(
            row for row in range(ROWS - 1, -1, -1) if self.grid[row][column] is None
        )
        new_row = tuple(
            team if col == column else content
            for col, content in enumerate(self.grid[target_row])
        )
        new_grid = self.grid[:target_row] + (new_row,) + self.grid[target_row + 1 :]
        return type(self)(new_grid), target_row

    def check_win(self, last_move: LastMove) -> WinResult:
        """
        Only a line through the piece that was just placed can be new, so only those four axes are scanned.
        ---
        For each axis: walk backwards until the run of the team's pieces ends, then walk forward from that boundary collecting cells.
        The first four cells of a long enough run are reported as the winning line.
        """
        for delta_column, delta_row in DIRECTIONS:
            line = self._run_through(last_move.cell, last_move.team, delta_column, delta_row)
            if len(line) >= WINNING_LENGTH:
                return WinResult(winner=last_move.team, winning_line=line[:WINNING_LENGTH])
        return WinResult()

    def _run_through(self, start: Cell, team: Team, delta_column: int, delta_row: int) -> list[Cell]:
        cell = start
        while self._holds(cell, team):
            cell = cell.shifted(-delta_column, -delta_row)

        line: list[Cell] = []
        cell = cell.shifted(delta_column, delta_row)
        while self._holds(cell, team):
            line.append(cell)
            cell = cell.shifted(delta_column, delta_row)
        return line

    def _holds(self, cell: Cell, team: Team) -> bool:
        return cell.is_within_bounds() and self.grid[cell.row][cell.column] == team


def next_team(team: Team) -> Team:
    return Team.YELLOW if team == Team.RED else Team.RED
