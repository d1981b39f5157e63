"""The board is pure data: which piece sits where. All rules live in moves.py, setup.py and game.py"""

from dataclasses import dataclass, field
from typing import Any, Optional, Self

from src.chess.pieces import Piece, PieceKind, Side
from src.chess.square import BOARD_SIZE, Position

# Type alias for the serialised grid (see GameModel.board)
Rows = list[list[Optional[dict[str, str]]]]


@dataclass
class Board:
    # only occupied squares are stored
    position: dict[Position, Piece] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> Self:
        return cls({})

    @classmethod
    def from_rows(cls, rows: list[list[Any]]) -> Self:
        """
        Construct a board from the snapshot grid: 8 rows of 8 cells, each either None or {"kind": ..., "side": ...}.
        Raises ValueError on a grid of the wrong shape, KeyError/ValueError on unknown cell contents.
        """
        if len(rows) != BOARD_SIZE or any(len(row) != BOARD_SIZE for row in rows):
            raise ValueError(f"Board must be {BOARD_SIZE}x{BOARD_SIZE}.")

        position: dict[Position, Piece] = {}
        for row_idx, row in enumerate(rows):
            for col_idx, cell in enumerate(row):
                if cell is not None:
                    position[Position(row_idx, col_idx)] = Piece.from_cell(cell)
        return cls(position)

    def to_rows(self) -> Rows:
        return [
            [
                self._cell(Position(row, col))
                for col in range(BOARD_SIZE)
            ]
            for row in range(BOARD_SIZE)
        ]

    def _cell(self, square: Position) -> Optional[dict[str, str]]:
        piece = self.piece(square)
        return piece.to_cell() if piece else None

    def copy(self) -> Self:
        # Pieces are frozen, so a shallow copy of the mapping is a full copy.
        return type(self)(dict(self.position))

    def piece(self, square: Position) -> Optional[Piece]:
        return self.position.get(square)

    def is_empty(self, square: Position) -> bool:
        return square not in self.position

    def place_piece(self, piece: Piece, square: Position) -> None:
        self.position[square] = piece

    def remove_piece(self, square: Position) -> Optional[Piece]:
        return self.position.pop(square, None)

    def move_piece(self, from_square: Position, to_square: Position) -> Optional[Piece]:
        """Update the position on the board. Returns whatever was standing on the target square (a capture)."""
        moving_piece = self.position.pop(from_square)
        captured = self.position.get(to_square)
        self.position[to_square] = moving_piece
        return captured

    def locate_side(self, side: Side) -> list[Position]:
        return [square for square, piece in self.position.items() if piece.side == side]

    def locate_king(self, side: Side) -> Optional[Position]:
        return next(
            (
                square
                for square, piece in self.position.items()
                if piece.side == side and piece.kind == PieceKind.KING
            ),
            None,
        )

    def has_king(self, side: Side) -> bool:
        return self.locate_king(side) is not None

    def clear_side(self, side: Side) -> None:
        for square in self.locate_side(side):
            del self.position[square]

    def count_material(self, side: Side) -> int:
        """Tally the draft cost of all pieces a side has on the board"""
        return sum(piece.cost for piece in self.position.values() if piece.side == side)

    def masked(self, visible: list[list[bool]]) -> Self:
        """Copy of the board where everything outside the visibility grid is removed"""
        return type(self)(
            {
                square: piece
                for square, piece in self.position.items()
                if visible[square.row][square.col]
            }
        )
