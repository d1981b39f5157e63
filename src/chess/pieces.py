"""Piece catalog: the kinds of pieces, what they cost during the draft, and how they are drawn"""

from dataclasses import dataclass
from enum import Enum
from typing import Self


class PieceKind(Enum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"


class Side(Enum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Side":
        return Side.BLACK if self == Side.WHITE else Side.WHITE


# Every side drafts its army from this many points.
INITIAL_BUDGET = 39

PIECE_COSTS: dict[PieceKind, int] = {
    PieceKind.PAWN: 1,
    PieceKind.KNIGHT: 3,
    PieceKind.BISHOP: 3,
    PieceKind.ROOK: 5,
    PieceKind.QUEEN: 9,
    # NOTE: The King is free, mandatory, and cannot be deleted (only relocated)
    PieceKind.KING: 0,
}

# Presentation only. The engine never looks at these.
PIECE_SYMBOLS: dict[PieceKind, str] = {
    PieceKind.PAWN: "♟",
    PieceKind.KNIGHT: "♞",
    PieceKind.BISHOP: "♝",
    PieceKind.ROOK: "♜",
    PieceKind.QUEEN: "♛",
    PieceKind.KING: "♚",
}

PURCHASABLE_KINDS: tuple[PieceKind, ...] = tuple(
    kind for kind in PieceKind if kind != PieceKind.KING
)


def cost(kind: PieceKind) -> int:
    return PIECE_COSTS[kind]


def symbol(kind: PieceKind) -> str:
    return PIECE_SYMBOLS[kind]


@dataclass(frozen=True)
class Piece:
    """Immutable: a move replaces the piece on the board, never mutates it."""

    kind: PieceKind
    side: Side

    @property
    def cost(self) -> int:
        return PIECE_COSTS[self.kind]

    @property
    def is_king(self) -> bool:
        return self.kind == PieceKind.KING

    @classmethod
    def from_cell(cls, cell: dict[str, str]) -> Self:
        """Snapshot cell: {"kind": "rook", "side": "white"}. Raises KeyError / ValueError on garbage (Game turns that into a SnapshotError)."""
        return cls(PieceKind(cell["kind"]), Side(cell["side"]))

    def to_cell(self) -> dict[str, str]:
        return {"kind": self.kind.value, "side": self.side.value}
