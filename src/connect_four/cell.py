"""
A cell on the board

(placed in its own module as multiple other modules need to import it)
"""

from dataclasses import dataclass

from src.core.shared_types import Team

# (rows, columns). Row 0 is the top of the grid, pieces fall towards row ROWS - 1.
BOARD_DIMENSIONS = (6, 7)
ROWS, COLUMNS = BOARD_DIMENSIONS
WINNING_LENGTH = 4


@dataclass(frozen=True)
class Cell:
    column: int
    row: int

    def is_within_bounds(self) -> bool:
        return (0 <= self.column < COLUMNS) and (0 <= self.row < ROWS)

    def shifted(self, delta_column: int, delta_row: int) -> "Cell":
        return Cell(self.column + delta_column, self.row + delta_row)


@dataclass(frozen=True)
class LastMove:
    """The most recently placed piece."""

    column: int
    row: int
    team: Team

    @property
    def cell(self) -> Cell:
        return Cell(self.column, self.row)
