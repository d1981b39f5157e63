"""
Geometry/Base movement and capturing rules

Key idea: Use strategy pattern to define legal destination sets for each piece kind.

With fog of war, every candidate square is first checked against what the moving side can see:
* visible squares get the exact rule (empty: move, opponent: capture, own piece: blocked)
* hidden squares are offered optimistically as 'fogged' destinations. The mover cannot know what is there.

Where a fogged move actually ends up is decided when it is played (see `resolve_landing()`).
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, Self

from src.chess.pieces import Piece, PieceKind, Side
from src.chess.square import Position
from src.chess.visibility import VisibilityGrid, full_visibility, visible_squares


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def piece(self, square: Position) -> Optional[Piece]: ...
    def locate_side(self, side: Side) -> list[Position]: ...


Vector = tuple[int, int]

DIAGONALS: list[Vector] = [(1, 1), (1, -1), (-1, 1), (-1, -1)]
STRAIGHTS: list[Vector] = [(0, 1), (0, -1), (1, 0), (-1, 0)]
KNIGHT_DELTAS: list[Vector] = [
    (-2, -1),
    (-2, 1),
    (-1, -2),
    (-1, 2),
    (1, -2),
    (1, 2),
    (2, -1),
    (2, 1),
]
KING_DELTAS: list[Vector] = STRAIGHTS + DIAGONALS

SLIDING_KINDS: frozenset[PieceKind] = frozenset(
    {PieceKind.BISHOP, PieceKind.ROOK, PieceKind.QUEEN}
)

# White marches up the board (towards row 0), Black down.
PAWN_DIRECTION: dict[Side, int] = {Side.WHITE: -1, Side.BLACK: 1}
PAWN_START_ROW: dict[Side, int] = {Side.WHITE: 6, Side.BLACK: 1}


@dataclass
class Move:
    """basic definition of a move to be made"""

    from_square: Position
    to_square: Position

    @classmethod
    def from_notation(cls, notation: str) -> Self:
        """
        Move history notation
        ---
        <file><rank>-<file><rank>, ex. "e2-e4".
        The to-square is where the piece actually landed (after fog resolution).
        """
        from_alg, to_alg = notation.split("-")
        return cls(Position.from_algebraic(from_alg), Position.from_algebraic(to_alg))

    def to_notation(self) -> str:
        return f"{self.from_square.to_algebraic()}-{self.to_square.to_algebraic()}"


@dataclass
class MoveSet:
    """Destinations of a single piece, split into fully validated (visible) and speculative (fogged) ones."""

    visible: list[Position] = field(default_factory=list)
    fogged: list[Position] = field(default_factory=list)

    def __contains__(self, square: Position) -> bool:
        return square in self.visible or square in self.fogged

    def __len__(self) -> int:
        return len(self.visible) + len(self.fogged)

    def destinations(self) -> list[Position]:
        return self.visible + self.fogged

    def is_fogged(self, square: Position) -> bool:
        return square in self.fogged

    def extend(self, other: "MoveSet") -> None:
        self.visible.extend(other.visible)
        self.fogged.extend(other.fogged)


# --- MOVEMENT RULES ---
def _add_destination(
    moves: MoveSet,
    target: Position,
    piece: Piece,
    board: Board,
    visibility: VisibilityGrid,
) -> bool:
    """
    Classify a single candidate square and record it.

    Returns True if a ray may continue past this square (it is, or is assumed to be, empty).
    """
    if not visibility[target.row][target.col]:
        # hidden: assume it is empty, so a ray keeps going
        moves.fogged.append(target)
        return True

    occupant = board.piece(target)
    if occupant is None:
        moves.visible.append(target)
        return True
    if occupant.side != piece.side:
        moves.visible.append(target)
    return False


def raycasting_move(
    square: Position,
    piece: Piece,
    board: Board,
    visibility: VisibilityGrid,
    directions: list[Vector],
) -> MoveSet:
    """
    Raycasting algorithm
    -----

    Move along each direction until we hit another piece or the edge of the board.
    The first occupied square only counts if it holds an opponent's piece (a capture).

    Under fog, a ray does not stop at hidden squares: the rest of the ray up to the edge of the board becomes fogged destinations,
    unless a square further along is visible AND occupied.
    """
    moves = MoveSet()
    for d_row, d_col in directions:
        target = square.offset(d_row, d_col)
        while target.is_within_bounds():
            if not _add_destination(moves, target, piece, board, visibility):
                break
            target = target.offset(d_row, d_col)
    return moves


def single_step_move(
    square: Position,
    piece: Piece,
    board: Board,
    visibility: VisibilityGrid,
    deltas: list[Vector],
) -> MoveSet:
    """Raycasting is for sliding pieces. This is the equivalent for kings and knights that just jump a single step along a direction"""
    moves = MoveSet()
    for d_row, d_col in deltas:
        target = square.offset(d_row, d_col)
        if target.is_within_bounds():
            _add_destination(moves, target, piece, board, visibility)
    return moves


def candidate_pawn_moves(
    square: Position, piece: Piece, board: Board, visibility: VisibilityGrid
) -> MoveSet:
    """
    A pawn:
    - moves by a single square forward, onto an empty square only (never captures forward)
    - can move by two from its start row, if both squares are empty
    - takes diagonally

    Under fog, hidden squares are assumed empty (for pushes) and capturable (for takes).
    No en passant, no promotion.
    """
    moves = MoveSet()
    direction = PAWN_DIRECTION[piece.side]

    # Pawn pushes
    single = square.offset(direction, 0)
    if single.is_within_bounds():
        if not visibility[single.row][single.col]:
            moves.fogged.append(single)
        elif board.piece(single) is None:
            moves.visible.append(single)

    if square.row == PAWN_START_ROW[piece.side]:
        double = square.offset(2 * direction, 0)
        if double.is_within_bounds():
            intermediate_seen = visibility[single.row][single.col]
            intermediate_empty = board.piece(single) is None
            if visibility[double.row][double.col]:
                if intermediate_empty and board.piece(double) is None:
                    moves.visible.append(double)
            elif not intermediate_seen or intermediate_empty:
                # In fog, assume the path is clear unless we can see it is not
                moves.fogged.append(double)

    # Pawns take diagonally
    for d_col in (-1, 1):
        target = square.offset(direction, d_col)
        if not target.is_within_bounds():
            continue
        if not visibility[target.row][target.col]:
            moves.fogged.append(target)
            continue
        occupant = board.piece(target)
        if occupant is not None and occupant.side != piece.side:
            moves.visible.append(target)
    return moves


def candidate_knight_moves(
    square: Position, piece: Piece, board: Board, visibility: VisibilityGrid
) -> MoveSet:
    """Knights always move such that |delta_row| + |delta_col| = 3"""
    return single_step_move(square, piece, board, visibility, KNIGHT_DELTAS)


def candidate_bishop_moves(
    square: Position, piece: Piece, board: Board, visibility: VisibilityGrid
) -> MoveSet:
    """Bishops move diagonally: |delta_row| = |delta_col|"""
    return raycasting_move(square, piece, board, visibility, DIAGONALS)


def candidate_rook_moves(
    square: Position, piece: Piece, board: Board, visibility: VisibilityGrid
) -> MoveSet:
    """Rooks move either horizontally or vertically"""
    return raycasting_move(square, piece, board, visibility, STRAIGHTS)


def candidate_queen_moves(
    square: Position, piece: Piece, board: Board, visibility: VisibilityGrid
) -> MoveSet:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    moves = candidate_bishop_moves(square, piece, board, visibility)
    moves.extend(candidate_rook_moves(square, piece, board, visibility))
    return moves


def candidate_king_moves(
    square: Position, piece: Piece, board: Board, visibility: VisibilityGrid
) -> MoveSet:
    """The king can move by a single square at the time. There is no castling in budget chess."""
    return single_step_move(square, piece, board, visibility, KING_DELTAS)


# -- STRATEGY PATTERN: MOVEMENT RULES ---
CandidateMovesFn = Callable[[Position, Piece, Board, VisibilityGrid], MoveSet]
MOVEMENT_RULES: dict[PieceKind, CandidateMovesFn] = {
    PieceKind.PAWN: candidate_pawn_moves,
    PieceKind.KNIGHT: candidate_knight_moves,
    PieceKind.BISHOP: candidate_bishop_moves,
    PieceKind.ROOK: candidate_rook_moves,
    PieceKind.QUEEN: candidate_queen_moves,
    PieceKind.KING: candidate_king_moves,
}


def legal_moves(
    board: Board,
    square: Position,
    piece: Piece,
    fog_of_war: bool = False,
    visibility: Optional[VisibilityGrid] = None,
) -> MoveSet:
    """
    Legal destinations of `piece` standing on `square`.
    ----

    Without fog, only the visible set gets filled (the mover has full knowledge of the board).
    With fog, the visibility of the moving side is used (computed here if the caller did not pass it).
    """
    if not fog_of_war:
        visibility = full_visibility()
    elif visibility is None:
        visibility = visible_squares(board, piece.side)

    movement_rule = MOVEMENT_RULES[piece.kind]
    return movement_rule(square, piece, board, visibility)


# --- BLIND CAPTURES ---
def _unit_step(delta: int) -> int:
    return (delta > 0) - (delta < 0)


def resolve_landing(
    board: Board, from_square: Position, to_square: Position, piece: Piece
) -> Position:
    """
    Where does a move into the fog actually end up?
    ----

    * Kings, knights and pawns land exactly on the intended square (whatever is there gets taken).
      A diagonal pawn move that finds no opponent there still lands: it slips diagonally without capturing.
    * Sliding pieces trace the path towards the intended square and stop at the first piece found on the way,
      capturing it, even if that is short of where the player aimed.

    NOTE: own pieces are always visible to their side, so a legal ray never passes through one. Any piece found is the opponent's.
    """
    if piece.kind not in SLIDING_KINDS:
        return to_square

    d_row = _unit_step(to_square.row - from_square.row)
    d_col = _unit_step(to_square.col - from_square.col)
    square = from_square.offset(d_row, d_col)
    while square != to_square:
        if board.piece(square) is not None:
            return square
        square = square.offset(d_row, d_col)
    return to_square
