"""
Fog of war
----

A side only sees the squares next to its own pieces (8-neighbourhood, including the square the piece stands on).
Pure function of board + side: recomputed after every mutation, never cached.
"""

from typing import Protocol

from src.chess.pieces import Side
from src.chess.square import BOARD_SIZE, Position

VisibilityGrid = list[list[bool]]

NEIGHBOURHOOD: tuple[tuple[int, int], ...] = tuple(
    (d_row, d_col) for d_row in (-1, 0, 1) for d_col in (-1, 0, 1)
)


class Board(Protocol):
    """Just the part the visibility calculation needs"""

    def locate_side(self, side: Side) -> list[Position]: ...


def full_visibility() -> VisibilityGrid:
    return [[True] * BOARD_SIZE for _ in range(BOARD_SIZE)]


def visible_squares(board: Board, side: Side, fog_of_war: bool = True) -> VisibilityGrid:
    """Without fog every square is visible. With fog: every square within one step of one of `side`'s pieces."""
    if not fog_of_war:
        return full_visibility()

    visible = [[False] * BOARD_SIZE for _ in range(BOARD_SIZE)]
    for square in board.locate_side(side):
        for d_row, d_col in NEIGHBOURHOOD:
            neighbour = square.offset(d_row, d_col)
            if neighbour.is_within_bounds():
                visible[neighbour.row][neighbour.col] = True
    return visible


def count_visible(visible: VisibilityGrid) -> int:
    return sum(sum(row) for row in visible)
