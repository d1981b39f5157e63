"""
Draft (setup) phase helpers: placement zones, the King's home square, and army layouts (presets).

The rules that mutate a game during setup live on Game. This module holds the static geometry they rely on.
"""

from dataclasses import dataclass
from typing import Optional, Self

from src.chess.pieces import INITIAL_BUDGET, PIECE_COSTS, PieceKind, Side
from src.chess.square import BOARD_SIZE, Position
from src.core.models import SavedSetupModel

# Each side drafts in the three ranks closest to its own edge.
PLACEMENT_ROWS: dict[Side, range] = {
    Side.WHITE: range(5, 8),
    Side.BLACK: range(0, 3),
}

HOME_ROW: dict[Side, int] = {Side.WHITE: 7, Side.BLACK: 0}
PAWN_ROW: dict[Side, int] = {Side.WHITE: 6, Side.BLACK: 1}
KING_HOME_COL = 4

CLASSIC_PRESET = "classic"
CLASSIC_BACK_RANK: tuple[PieceKind, ...] = (
    PieceKind.ROOK,
    PieceKind.KNIGHT,
    PieceKind.BISHOP,
    PieceKind.QUEEN,
    PieceKind.KING,
    PieceKind.BISHOP,
    PieceKind.KNIGHT,
    PieceKind.ROOK,
)


def in_placement_zone(square: Position, side: Side) -> bool:
    return square.is_within_bounds() and square.row in PLACEMENT_ROWS[side]


def king_home(side: Side) -> Position:
    """e1 for White, e8 for Black"""
    return Position(HOME_ROW[side], KING_HOME_COL)


def layout_cost(layout: dict[Position, PieceKind]) -> int:
    return sum(PIECE_COSTS[kind] for kind in layout.values())


def classic_layout(side: Side) -> dict[Position, PieceKind]:
    """The standard chess opening ranks for one side"""
    layout = {
        Position(HOME_ROW[side], col): kind for col, kind in enumerate(CLASSIC_BACK_RANK)
    }
    layout.update(
        {Position(PAWN_ROW[side], col): PieceKind.PAWN for col in range(BOARD_SIZE)}
    )
    return layout


@dataclass(frozen=True)
class SavedSetup:
    """
    A layout a player saved earlier.
    ----

    The budget stored is the budget the player had LEFT when saving. Applying the layout restores exactly that budget.
    """

    name: str
    side: Side
    pieces: dict[Position, PieceKind]
    budget: int

    def layout_for(self, side: Side) -> dict[Position, PieceKind]:
        """A layout saved as White can be used as Black (and the other way around): flip it onto the other half of the board."""
        if side == self.side:
            return dict(self.pieces)
        return {square.mirrored(): kind for square, kind in self.pieces.items()}

    @classmethod
    def from_model(cls, model: SavedSetupModel) -> Self:
        return cls(
            name=model.name,
            side=Side(model.side),
            pieces={
                Position.from_algebraic(square): PieceKind(kind)
                for square, kind in model.pieces.items()
            },
            budget=model.budget,
        )

    def to_model(self) -> SavedSetupModel:
        return SavedSetupModel(
            name=self.name,
            side=self.side.value,
            pieces={
                square.to_algebraic(): kind.value
                for square, kind in self.pieces.items()
            },
            budget=self.budget,
        )


def preset_layout(
    name: str, side: Side, saved_setups: Optional[dict[str, SavedSetup]] = None
) -> Optional[tuple[dict[Position, PieceKind], int]]:
    """
    Resolve a preset name into (layout, remaining budget).

    "classic" is built in, and its cost is recomputed. Anything else is looked up in the player's saved layouts.
    Returns None for an unknown name.
    """
    if name == CLASSIC_PRESET:
        layout = classic_layout(side)
        return layout, INITIAL_BUDGET - layout_cost(layout)

    saved = (saved_setups or {}).get(name)
    if saved is None:
        return None
    return saved.layout_for(side), saved.budget
