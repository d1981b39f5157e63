"""
The Game class will be the entrypoint into the domain layer for the service layer.
It is responsible for orchestrating all the business logic required to draft an army and play a turn of budget chess -->
passes this information to the service layer, which can then pass it onwards to the API layer.

Life cycle:  waiting_for_opponent --> setup --> playing --> game_over

* setup: the sides take turns drafting their army from a budget. `current_turn` means "whose draft turn" here.
* playing: strictly alternating moves (or a forced turn switch when the clock runs out), optionally under fog of war.
* game_over: a King got captured. Frozen.

Gameplay mistakes do not raise. Every mutating method returns an ActionResult, and a rejected action leaves the game untouched.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Self

from src.chess.board import Board
from src.chess.moves import Move, MoveSet, legal_moves, resolve_landing
from src.chess.outcome import ActionResult, Rejection
from src.chess.pieces import INITIAL_BUDGET, Piece, PieceKind, Side, cost
from src.chess.setup import (
    SavedSetup,
    in_placement_zone,
    king_home,
    layout_cost,
    preset_layout,
)
from src.chess.square import BOARD_SIZE, Position
from src.chess.visibility import VisibilityGrid, full_visibility, visible_squares
from src.core.exceptions import GameStateError, SnapshotError
from src.core.models import GameModel
from src.core.shared_types import Phase, Status

log = logging.getLogger(__name__)

SIDE_NAMES: dict[Side, str] = {Side.WHITE: "White", Side.BLACK: "Black"}
WINNING_STATUS: dict[Side, Status] = {
    Side.WHITE: Status.WHITE_WINS,
    Side.BLACK: Status.BLACK_WINS,
}


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    board: Board
    phase: Phase
    current_turn: Side
    move_history: list[str]  # "e2-e4" notation, append only
    status: Status
    budgets: dict[Side, int]
    setup_complete: dict[Side, bool]
    time_remaining: dict[Side, int]
    fog_of_war: bool
    move_time_limit: int  # seconds, 0 = unlimited
    players: dict[Side, str]
    version: int = 0

    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        """
        Hydrate a Game from a snapshot.

        Any malformed or missing field is fatal to this attempt: raises SnapshotError.
        """
        try:
            board = Board.from_rows(model.board)
            phase = Phase(model.phase)
            current_turn = Side(model.current_turn)
            status = Status(model.game_status)
            players = {Side(color): name for color, name in model.players.items()}
        except (AttributeError, KeyError, TypeError, ValueError) as error:
            raise SnapshotError(f"Malformed snapshot: {error!r}") from error

        if not isinstance(model.move_history, list) or not all(
            isinstance(move, str) for move in model.move_history
        ):
            raise SnapshotError("Move history must be a list of move notations.")

        for side in Side:
            kings = [piece for piece in board.position.values() if piece == Piece(PieceKind.KING, side)]
            if len(kings) > 1:
                raise SnapshotError(f"{SIDE_NAMES[side]} has {len(kings)} kings on the board.")

        for flag_name in (
            "white_setup_complete",
            "black_setup_complete",
            "fog_of_war_enabled",
        ):
            if not isinstance(getattr(model, flag_name), bool):
                raise SnapshotError(f"Snapshot field {flag_name!r} must be a boolean.")

        for number_name in (
            "white_budget",
            "black_budget",
            "move_time_limit",
            "time_remaining_white",
            "time_remaining_black",
            "version",
        ):
            _require_count(model, number_name)

        return cls(
            board=board,
            phase=phase,
            current_turn=current_turn,
            move_history=list(model.move_history),
            status=status,
            budgets={Side.WHITE: model.white_budget, Side.BLACK: model.black_budget},
            setup_complete={
                Side.WHITE: model.white_setup_complete,
                Side.BLACK: model.black_setup_complete,
            },
            time_remaining={
                Side.WHITE: model.time_remaining_white,
                Side.BLACK: model.time_remaining_black,
            },
            fog_of_war=model.fog_of_war_enabled,
            move_time_limit=model.move_time_limit,
            players=players,
            version=model.version,
        )

    def to_model(self) -> GameModel:
        """Encode back into the snapshot format the Service layer persists and broadcasts"""
        return GameModel(
            board=self.board.to_rows(),
            phase=self.phase.value,
            current_turn=self.current_turn.value,
            move_history=list(self.move_history),
            game_status=self.status.value,
            white_budget=self.budgets[Side.WHITE],
            black_budget=self.budgets[Side.BLACK],
            white_setup_complete=self.setup_complete[Side.WHITE],
            black_setup_complete=self.setup_complete[Side.BLACK],
            fog_of_war_enabled=self.fog_of_war,
            move_time_limit=self.move_time_limit,
            time_remaining_white=self.time_remaining[Side.WHITE],
            time_remaining_black=self.time_remaining[Side.BLACK],
            players={side.value: name for side, name in self.players.items()},
            version=self.version,
        )

    @classmethod
    def new_game(
        cls,
        player: str,
        color: str = Side.WHITE.value,
        fog_of_war: bool = False,
        move_time_limit: int = 0,
    ) -> Self:
        """To start a new game with the player using the pieces with the indicated color. The board starts empty."""
        if color.lower() not in [side.value for side in Side]:
            raise GameStateError(
                f"Cannot create new game. Color {color} not in {','.join(side.value for side in Side)}."
            )
        if move_time_limit < 0:
            raise GameStateError(
                f"Cannot create new game. Move time limit must be 0 (unlimited) or positive, got {move_time_limit}."
            )

        return cls(
            board=Board.empty(),
            phase=Phase.WAITING_FOR_OPPONENT,
            current_turn=Side.WHITE,
            move_history=[],
            status=Status.WAITING_FOR_OPPONENT,
            budgets={side: INITIAL_BUDGET for side in Side},
            setup_complete={side: False for side in Side},
            time_remaining={side: move_time_limit for side in Side},
            fog_of_war=fog_of_war,
            move_time_limit=move_time_limit,
            players={Side(color.lower()): player},
        )

    @property
    def winning_side(self) -> Optional[Side]:
        if self.status == Status.WHITE_WINS:
            return Side.WHITE
        if self.status == Status.BLACK_WINS:
            return Side.BLACK
        return None

    @property
    def winner(self) -> Optional[str]:
        """Name of the player whose King survived, once the game is over"""
        side = self.winning_side
        return self.players.get(side) if side else None

    def register_player(self, player: str) -> None:
        """
        Registering the 2nd player to an open game.

        Lobby misuse is not a gameplay mistake, so this one raises.
        Once both players are in, the draft starts: White drafts first and both Kings are put on their home squares.
        """
        if self.phase != Phase.WAITING_FOR_OPPONENT:
            raise GameStateError(
                f"Cannot join this game. Game is not accepting new players. phase: {self.phase}"
            )
        if player in self.players.values():
            raise GameStateError(f"Player {player!r} already joined this game.")

        opponent_color = next(iter(self.players))
        self.players[opponent_color.opponent] = player
        self._start_setup()
        self.version += 1
        log.info("Player %r joined as %s. Setup started.", player, opponent_color.opponent.value)

    # --- QUERIES ---
    def side_of(self, player: str) -> Optional[Side]:
        return next((side for side, name in self.players.items() if name == player), None)

    def visible_squares(self, side: Side) -> VisibilityGrid:
        return visible_squares(self.board, side, self.fog_of_war)

    def player_view(self, player: str) -> tuple[Board, VisibilityGrid]:
        """
        What a player is allowed to see: the board with everything outside their visibility removed.
        Unknown players (spectators) only get to see the board without fog.
        """
        side = self.side_of(player)
        if side is None:
            if self.fog_of_war:
                return Board.empty(), [[False] * BOARD_SIZE for _ in range(BOARD_SIZE)]
            return self.board.copy(), full_visibility()
        visible = self.visible_squares(side)
        return self.board.masked(visible), visible

    def legal_moves(self, player: str, square: Position) -> MoveSet:
        """
        Legal destinations of the player's piece on `square`.
        Empty when it is not a legal question to ask (wrong phase, not your turn, not your piece).
        """
        if self.phase != Phase.PLAYING or self.side_of(player) != self.current_turn:
            return MoveSet()
        piece = self.board.piece(square)
        if piece is None or piece.side != self.current_turn:
            return MoveSet()
        return self._generate_moves(square, piece)

    # --- SETUP PHASE ---
    def place_piece(self, player: str, square: Position, kind: PieceKind) -> ActionResult:
        """Buy a piece and put it on an empty square in your own zone"""
        rejection = self._check_actor(player, Phase.SETUP)
        if rejection:
            return self._reject(rejection, "place_piece", player)

        side = self.current_turn
        if not in_placement_zone(square, side):
            return self._reject(Rejection.OUTSIDE_ZONE, "place_piece", player)
        if not self.board.is_empty(square):
            return self._reject(Rejection.SQUARE_OCCUPIED, "place_piece", player)
        if kind == PieceKind.KING and self.board.has_king(side):
            return self._reject(Rejection.KING_ALREADY_PLACED, "place_piece", player)
        if self.budgets[side] < cost(kind):
            return self._reject(Rejection.INSUFFICIENT_BUDGET, "place_piece", player)

        self.board.place_piece(Piece(kind, side), square)
        self.budgets[side] -= cost(kind)
        return self._accept()

    def move_setup_piece(
        self, player: str, from_square: Position, to_square: Position
    ) -> ActionResult:
        """
        Relocate one of your own pieces within your zone. Costs nothing.
        ---

        * target holds one of your own pieces --> no-op (the UI treats it as re-selecting)
        * target holds an opponent's piece --> that piece is removed, and its cost is refunded to YOU (the side moving)
        """
        rejection = self._check_actor(player, Phase.SETUP)
        if rejection:
            return self._reject(rejection, "move_setup_piece", player)

        side = self.current_turn
        piece = self.board.piece(from_square)
        if piece is None:
            return self._reject(Rejection.NO_PIECE, "move_setup_piece", player)
        if piece.side != side:
            return self._reject(Rejection.NOT_YOUR_PIECE, "move_setup_piece", player)
        if from_square == to_square:
            return self._reject(Rejection.SAME_SQUARE, "move_setup_piece", player)
        if not in_placement_zone(to_square, side):
            return self._reject(Rejection.OUTSIDE_ZONE, "move_setup_piece", player)

        notice = None
        occupant = self.board.piece(to_square)
        if occupant is not None:
            if occupant.side == side:
                return self._reject(Rejection.SQUARE_OCCUPIED, "move_setup_piece", player)
            if occupant.is_king:
                return self._reject(
                    Rejection.KING_CANNOT_BE_REMOVED, "move_setup_piece", player
                )
            self.budgets[side] += occupant.cost
            notice = f"Removed {occupant.side.value} {occupant.kind.value} on {to_square.to_algebraic()}, refunded {occupant.cost}."

        self.board.move_piece(from_square, to_square)
        return self._accept(notice)

    def remove_piece(self, player: str, square: Position) -> ActionResult:
        """Sell one of your own pieces back. The King cannot be deleted, only moved."""
        rejection = self._check_actor(player, Phase.SETUP)
        if rejection:
            return self._reject(rejection, "remove_piece", player)

        side = self.current_turn
        piece = self.board.piece(square)
        if piece is None:
            return self._reject(Rejection.NO_PIECE, "remove_piece", player)
        if piece.side != side:
            return self._reject(Rejection.NOT_YOUR_PIECE, "remove_piece", player)
        if piece.is_king:
            return self._reject(Rejection.KING_CANNOT_BE_REMOVED, "remove_piece", player)

        self.board.remove_piece(square)
        self.budgets[side] += piece.cost
        return self._accept()

    def apply_preset(
        self,
        player: str,
        name: str,
        saved_setups: Optional[dict[str, SavedSetup]] = None,
    ) -> ActionResult:
        """
        Replace your whole army in one go.
        ---

        * "classic": the standard chess opening ranks (costs the full budget).
        * any other name: one of the player's saved layouts. The budget left is the budget recorded when it was saved.

        Atomic: either the full layout is applied, or nothing changes.
        """
        rejection = self._check_actor(player, Phase.SETUP)
        if rejection:
            return self._reject(rejection, "apply_preset", player)

        side = self.current_turn
        resolved = preset_layout(name, side, saved_setups)
        if resolved is None:
            return self._reject(Rejection.UNKNOWN_PRESET, "apply_preset", player)
        layout, budget = resolved

        if budget < 0 or layout_cost(layout) + budget > INITIAL_BUDGET:
            return self._reject(Rejection.INSUFFICIENT_BUDGET, "apply_preset", player)
        if not all(in_placement_zone(square, side) for square in layout):
            return self._reject(Rejection.OUTSIDE_ZONE, "apply_preset", player)
        kings = [square for square, kind in layout.items() if kind == PieceKind.KING]
        if len(kings) > 1:
            return self._reject(Rejection.KING_ALREADY_PLACED, "apply_preset", player)

        # work on a copy, so a layout that does not fit leaves the board untouched
        board = self.board.copy()
        board.clear_side(side)
        if not all(board.is_empty(square) for square in layout):
            return self._reject(Rejection.SQUARE_OCCUPIED, "apply_preset", player)
        for square, kind in layout.items():
            board.place_piece(Piece(kind, side), square)
        if not kings:
            home = king_home(side)
            if not board.is_empty(home):
                return self._reject(Rejection.KING_MISSING, "apply_preset", player)
            board.place_piece(Piece(PieceKind.KING, side), home)

        self.board = board
        self.budgets[side] = budget
        return self._accept(f"Applied preset {name!r}.")

    def capture_setup(self, player: str, name: str) -> Optional[SavedSetup]:
        """Snapshot of the player's current army + budget left, so it can be saved under a name. Not a mutation."""
        side = self.side_of(player)
        if side is None or self.phase != Phase.SETUP:
            return None
        pieces = {
            square: self.board.position[square].kind
            for square in self.board.locate_side(side)
        }
        return SavedSetup(name=name.strip(), side=side, pieces=pieces, budget=self.budgets[side])

    def finish_setup(self, player: str) -> ActionResult:
        """
        Done drafting.
        ---

        * Must have a King on the board.
        * If the opponent is done as well: the game starts, White moves first, both clocks are reset.
        * Otherwise: hand the draft over to the opponent.
        """
        rejection = self._check_actor(player, Phase.SETUP)
        if rejection:
            return self._reject(rejection, "finish_setup", player)

        side = self.current_turn
        if not self.board.has_king(side):
            return self._reject(Rejection.KING_MISSING, "finish_setup", player)

        self.setup_complete[side] = True
        opponent = side.opponent
        if self.setup_complete[opponent]:
            self._start_playing()
            notice = "Both armies are ready. White moves first."
        else:
            self.current_turn = opponent
            self._ensure_king(opponent)
            notice = f"{SIDE_NAMES[side]} finished setup. {SIDE_NAMES[opponent]} to set up."
        log.info(notice)
        return self._accept(notice)

    def reset_side(self, player: str) -> ActionResult:
        """Start your draft over: only the King is kept (back on its home square) and the full budget is restored"""
        rejection = self._check_actor(player, Phase.SETUP)
        if rejection:
            return self._reject(rejection, "reset_side", player)

        side = self.current_turn
        self.board.clear_side(side)
        self._ensure_king(side)
        self.budgets[side] = INITIAL_BUDGET
        return self._accept()

    def reset_game(self, player: str) -> ActionResult:
        """Either player can send the game back to a fresh draft (same players, same options)"""
        if self.side_of(player) is None:
            return self._reject(Rejection.UNKNOWN_PLAYER, "reset_game", player)
        if self.phase == Phase.WAITING_FOR_OPPONENT:
            return self._reject(Rejection.WRONG_PHASE, "reset_game", player)

        self.board = Board.empty()
        self.move_history = []
        self.budgets = {side: INITIAL_BUDGET for side in Side}
        self.setup_complete = {side: False for side in Side}
        self._reset_clocks()
        self._start_setup()
        log.info("Game reset by %r.", player)
        return self._accept()

    # --- PLAYING PHASE ---
    def make_move(self, player: str, from_square: Position, to_square: Position) -> ActionResult:
        """
        Attempt to make a move
        -----

        1. validate phase, turn, ownership, and that the destination is among the legal (visible or fogged) ones
        2. for a target in the fog, find where the piece actually lands (it may run into a hidden piece).
           A visible target is taken as is.
        3. update the board and the move history
        4. hand the turn over, the opponent's clock restarts at the full limit
        5. check if a King was taken
        """
        rejection = self._check_actor(player, Phase.PLAYING)
        if rejection:
            return self._reject(rejection, "make_move", player)

        side = self.current_turn
        piece = self.board.piece(from_square)
        if piece is None:
            return self._reject(Rejection.NO_PIECE, "make_move", player)
        if piece.side != side:
            return self._reject(Rejection.NOT_YOUR_PIECE, "make_move", player)
        moves = self._generate_moves(from_square, piece)
        if to_square not in moves:
            return self._reject(Rejection.ILLEGAL_DESTINATION, "make_move", player)

        landing = to_square
        if self.fog_of_war and moves.is_fogged(to_square):
            landing = resolve_landing(self.board, from_square, to_square, piece)
        captured = self.board.move_piece(from_square, landing)
        move = Move(from_square, landing)
        self.move_history.append(move.to_notation())

        self.current_turn = side.opponent
        self.time_remaining[side.opponent] = self.move_time_limit
        log.info("%s played %s.", SIDE_NAMES[side], move.to_notation())

        notice = self._update_game_status(side)
        if notice is None:
            notice = self._describe_move(to_square, landing, captured)
        return self._accept(notice)

    def tick(self) -> ActionResult:
        """
        One second of wall-clock time passed.
        ---

        Only runs during play, and only with a move time limit. When the clock of the side to move runs out,
        the turn goes to the opponent without a move being made. The game does not end.
        """
        if self.phase != Phase.PLAYING or self.move_time_limit <= 0:
            return ActionResult.rejected(Rejection.TIMER_INACTIVE)

        side = self.current_turn
        remaining = self.time_remaining[side] - 1
        if remaining > 0:
            self.time_remaining[side] = remaining
            return self._accept()

        opponent = side.opponent
        self.current_turn = opponent
        self.time_remaining[side] = self.move_time_limit
        self.time_remaining[opponent] = self.move_time_limit
        notice = f"{SIDE_NAMES[side]}'s time ran out. It's {opponent.value}'s turn."
        log.info(notice)
        return self._accept(notice)

    # -- PRIVATE HELPERS ---
    def _check_actor(self, player: str, phase: Phase) -> Optional[Rejection]:
        """Right phase, known player, and their turn?"""
        if self.phase != phase:
            return Rejection.WRONG_PHASE
        side = self.side_of(player)
        if side is None:
            return Rejection.UNKNOWN_PLAYER
        if side != self.current_turn:
            return Rejection.NOT_YOUR_TURN
        return None

    def _reject(self, reason: Rejection, action: str, player: str) -> ActionResult:
        log.debug("Rejected %s by %r: %s", action, player, reason.value)
        return ActionResult.rejected(reason)

    def _accept(self, notice: Optional[str] = None) -> ActionResult:
        self.version += 1
        return ActionResult.ok(notice)

    def _generate_moves(self, square: Position, piece: Piece) -> MoveSet:
        visibility = self.visible_squares(piece.side)
        return legal_moves(self.board, square, piece, self.fog_of_war, visibility)

    def _ensure_king(self, side: Side) -> None:
        """A side always starts its draft with a King on its home square"""
        if not self.board.has_king(side):
            self.board.place_piece(Piece(PieceKind.KING, side), king_home(side))

    def _start_setup(self) -> None:
        self.phase = Phase.SETUP
        self.status = Status.IN_PROGRESS
        self.current_turn = Side.WHITE
        for side in Side:
            self._ensure_king(side)

    def _start_playing(self) -> None:
        self.phase = Phase.PLAYING
        self.current_turn = Side.WHITE
        self._reset_clocks()

    def _reset_clocks(self) -> None:
        self.time_remaining = {side: self.move_time_limit for side in Side}

    def _update_game_status(self, mover: Side) -> Optional[str]:
        """
        Capturing the King wins the game.

        Checked right after a move: if a King is gone, the side that still has one wins and the board is frozen.
        """
        defender = mover.opponent
        if self.board.has_king(mover) and self.board.has_king(defender):
            return None

        winner = mover if not self.board.has_king(defender) else defender
        self.phase = Phase.GAME_OVER
        self.status = WINNING_STATUS[winner]
        notice = f"{SIDE_NAMES[winner]} wins! {SIDE_NAMES[winner.opponent]} king captured."
        log.info(notice)
        return notice

    def _describe_move(
        self, intended: Position, landing: Position, captured: Optional[Piece]
    ) -> Optional[str]:
        """Feedback for the mover on what happened in the fog"""
        parts: list[str] = []
        if landing != intended:
            parts.append(f"Ran into a piece on {landing.to_algebraic()}.")
        if captured is not None:
            parts.append(f"Captured a {captured.kind.value} on {landing.to_algebraic()}.")
        return " ".join(parts) or None


def _require_count(model: Any, field_name: str) -> None:
    """Snapshot counters (budgets, clocks, version) are non-negative integers"""
    value = getattr(model, field_name, None)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise SnapshotError(f"Snapshot field {field_name!r} must be a non-negative integer, got {value!r}.")
