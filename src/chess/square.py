"""
A square on the board

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass

# Budget chess is always played on 8x8.
BOARD_SIZE = 8


@dataclass(frozen=True)
class Position:
    """
    Grid coordinates. Row 0 is Black's home edge (rank 8), row 7 is White's (rank 1).
    Columns run left to right, a through h.
    """

    row: int
    col: int

    @classmethod
    def from_algebraic(cls, sq: str) -> Position:
        """Algebraic notation: 'a8' is (0, 0), 'h1' is (7, 7)"""
        col = ord(sq[0].lower()) - ord("a")
        rank = int(sq[1:])
        return cls(BOARD_SIZE - rank, col)

    def to_algebraic(self) -> str:
        return f"{chr(ord('a') + self.col)}{BOARD_SIZE - self.row}"

    def is_within_bounds(self) -> bool:
        return (0 <= self.row < BOARD_SIZE) and (0 <= self.col < BOARD_SIZE)

    def offset(self, d_row: int, d_col: int) -> Position:
        return Position(self.row + d_row, self.col + d_col)

    def mirrored(self) -> Position:
        """Same file, opposite half of the board (used to hand a layout saved as White over to Black and vice versa)."""
        return Position(BOARD_SIZE - 1 - self.row, self.col)


ALL_POSITIONS: tuple[Position, ...] = tuple(
    Position(row, col) for row in range(BOARD_SIZE) for col in range(BOARD_SIZE)
)
