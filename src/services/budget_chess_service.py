"""Orchestration of communication from API router to business logic and persistence layers (and the reverse direction)."""

import logging
from typing import Callable, Optional
from uuid import UUID

from src.api.models import (
    ActionResponse,
    CreateGameRequest,
    DeleteGameRequest,
    DeleteSetupRequest,
    GameResponse,
    GetGameRequest,
    JoinGameRequest,
    LegalMovesRequest,
    LegalMovesResponse,
    MoveRequest,
    PieceCell,
    PlacePieceRequest,
    PlayerActionRequest,
    PlayerViewResponse,
    PresetRequest,
    RemovePieceRequest,
    SavedSetupResponse,
    SaveSetupRequest,
    SnapshotPayload,
    SyncSnapshotRequest,
    TickRequest,
)
from src.chess.game import Game
from src.chess.outcome import ActionResult
from src.chess.pieces import PieceKind
from src.chess.setup import SavedSetup
from src.chess.square import Position
from src.core.exceptions import GameStateError, RepositoryError, StaleSnapshotError
from src.core.models import GameModel
from src.core.shared_types import Color, Status
from src.db.repository import Repository
from src.services.broadcast import SnapshotPublisher

log = logging.getLogger(__name__)

GameAction = Callable[[Game], ActionResult]


class BudgetChessService:
    """Orchestration of layers for budget chess."""

    def __init__(
        self, repository: Repository, publisher: Optional[SnapshotPublisher] = None
    ) -> None:
        self.repo = repository
        self.publisher = publisher

    # -- Lobby ---
    def create_game(self, request: CreateGameRequest) -> GameResponse:
        """First player requested to create a new game."""
        new_game = Game.new_game(
            player=request.player_name,
            color=request.color.value,
            fog_of_war=request.fog_of_war_enabled,
            move_time_limit=request.move_time_limit,
        )
        stored_game, game_id = self.repo.create_game(new_game.to_model())
        log.info("Game %s created by %r.", game_id, request.player_name)
        return self._create_game_response(game_id, stored_game)

    def join_game(self, request: JoinGameRequest) -> GameResponse:
        """Second player requested to join a game. The draft starts right away."""
        game = Game.from_model(self._fetch_game(request.game_id))
        game.register_player(request.player_name)
        with_player_registered = game.to_model()
        self._store(request.game_id, with_player_registered)
        return self._create_game_response(request.game_id, with_player_registered)

    def get_game(self, request: GetGameRequest) -> GameResponse:
        """
        Retrieve the full current snapshot.
        ----
        NOTE: this is the unfogged state. Clients playing with fog of war should use get_player_view().
        """
        return self._create_game_response(request.game_id, self._fetch_game(request.game_id))

    def get_player_view(self, request: PlayerActionRequest) -> PlayerViewResponse:
        """The board as the requesting player is allowed to see it."""
        game = Game.from_model(self._fetch_game(request.game_id))
        board, visible = game.player_view(request.player_name)
        side = game.side_of(request.player_name)
        return PlayerViewResponse(
            game_id=request.game_id,
            player_name=request.player_name,
            color=Color(side.value) if side else None,
            board=[
                [PieceCell.model_validate(cell) if cell else None for cell in row]
                for row in board.to_rows()
            ],
            visible=visible,
        )

    def delete_game(self, request: DeleteGameRequest) -> None:
        """Handle a request to delete a Game record."""
        if self.repo.delete_game(request.game_id) is None:
            raise RepositoryError(f"Game with game_id={request.game_id} not found.")

    # -- Setup phase ---
    def place_piece(self, request: PlacePieceRequest) -> ActionResponse:
        square = Position.from_algebraic(request.square)
        kind = PieceKind(request.piece_type.value)
        return self._apply(
            request.game_id,
            lambda game: game.place_piece(request.player_name, square, kind),
        )

    def move_setup_piece(self, request: MoveRequest) -> ActionResponse:
        from_square = Position.from_algebraic(request.from_square)
        to_square = Position.from_algebraic(request.to_square)
        return self._apply(
            request.game_id,
            lambda game: game.move_setup_piece(request.player_name, from_square, to_square),
        )

    def remove_piece(self, request: RemovePieceRequest) -> ActionResponse:
        square = Position.from_algebraic(request.square)
        return self._apply(
            request.game_id,
            lambda game: game.remove_piece(request.player_name, square),
        )

    def apply_preset(self, request: PresetRequest) -> ActionResponse:
        """'classic' or one of the layouts the player saved before"""
        saved_setups = self._saved_setups(request.player_name)
        return self._apply(
            request.game_id,
            lambda game: game.apply_preset(
                request.player_name, request.preset_name, saved_setups
            ),
        )

    def finish_setup(self, request: PlayerActionRequest) -> ActionResponse:
        return self._apply(
            request.game_id, lambda game: game.finish_setup(request.player_name)
        )

    def reset_side(self, request: PlayerActionRequest) -> ActionResponse:
        return self._apply(
            request.game_id, lambda game: game.reset_side(request.player_name)
        )

    def reset_game(self, request: PlayerActionRequest) -> ActionResponse:
        return self._apply(
            request.game_id, lambda game: game.reset_game(request.player_name)
        )

    # -- Saved setups ---
    def save_setup(self, request: SaveSetupRequest) -> SavedSetupResponse:
        """Store the player's current army under a name (overwrites a layout with the same name)."""
        game = Game.from_model(self._fetch_game(request.game_id))
        setup = game.capture_setup(request.player_name, request.setup_name)
        if setup is None:
            raise GameStateError(
                "Setups can only be saved by one of the players while the game is in setup."
            )
        stored = self.repo.save_setup(request.player_name, setup.to_model())
        log.info("Player %r saved setup %r.", request.player_name, stored.name)
        return SavedSetupResponse.from_model(request.player_name, stored)

    def list_setups(self, player_name: str) -> list[SavedSetupResponse]:
        return [
            SavedSetupResponse.from_model(player_name, setup)
            for setup in self.repo.get_setups(player_name)
        ]

    def delete_setup(self, request: DeleteSetupRequest) -> None:
        if self.repo.delete_setup(request.player_name, request.setup_name) is None:
            raise RepositoryError(
                f"Setup {request.setup_name!r} of player {request.player_name!r} not found."
            )

    # -- Playing phase ---
    def legal_moves(self, request: LegalMovesRequest) -> LegalMovesResponse:
        """Destinations for the piece on the requested square, split in visible and fogged ones."""
        game = Game.from_model(self._fetch_game(request.game_id))
        moves = game.legal_moves(
            request.player_name, Position.from_algebraic(request.square)
        )
        return LegalMovesResponse(
            game_id=request.game_id,
            player_name=request.player_name,
            square=request.square,
            visible=[square.to_algebraic() for square in moves.visible],
            fogged=[square.to_algebraic() for square in moves.fogged],
        )

    def make_move(self, request: MoveRequest) -> ActionResponse:
        """Make a move attempt."""
        from_square = Position.from_algebraic(request.from_square)
        to_square = Position.from_algebraic(request.to_square)
        return self._apply(
            request.game_id,
            lambda game: game.make_move(request.player_name, from_square, to_square),
        )

    def tick(self, request: TickRequest) -> ActionResponse:
        """One second passed on the clock of the side to move."""
        return self._apply(request.game_id, lambda game: game.tick())

    # -- Remote updates ---
    def sync_snapshot(self, request: SyncSnapshotRequest) -> GameResponse:
        """
        Accept a snapshot produced elsewhere and replace the stored state wholesale.
        ----

        The snapshot must hydrate into a valid Game (SnapshotError otherwise), and must carry a newer version than the stored one.
        Resending the stored snapshot unchanged is accepted and changes nothing.
        """
        stored = self._fetch_game(request.game_id)
        incoming = request.snapshot.to_model()
        # hydrating only validates, the snapshot itself is stored as received
        Game.from_model(incoming)

        if incoming == stored:
            return self._create_game_response(request.game_id, stored)
        if incoming.version <= stored.version:
            log.warning(
                "Refusing stale snapshot for game %s: version %d, stored version %d.",
                request.game_id,
                incoming.version,
                stored.version,
            )
            raise StaleSnapshotError(
                f"Snapshot version {incoming.version} is not newer than stored version {stored.version}."
            )

        self._store(request.game_id, incoming)
        return self._create_game_response(request.game_id, incoming)

    # -- Internal helpers --
    def _apply(self, game_id: UUID, action: GameAction) -> ActionResponse:
        """
        fetch --> hydrate --> act --> (only if accepted) persist + broadcast.
        A rejected action never reaches the repository.
        """
        game = Game.from_model(self._fetch_game(game_id))
        result = action(game)
        model = game.to_model()
        if result.accepted:
            self._store(game_id, model)

        return ActionResponse(
            accepted=result.accepted,
            reason=result.reason.value if result.reason else None,
            notice=result.notice,
            game=self._create_game_response(game_id, model),
        )

    def _store(self, game_id: UUID, model: GameModel) -> None:
        if self.repo.update_game(game_id, model) is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        log.debug("Stored version %d of game %s.", model.version, game_id)
        if self.publisher is not None:
            self.publisher.publish(game_id, model)

    def _saved_setups(self, player_name: str) -> dict[str, SavedSetup]:
        return {
            setup.name: SavedSetup.from_model(setup)
            for setup in self.repo.get_setups(player_name)
        }

    def _create_game_response(self, game_id: UUID, model: GameModel) -> GameResponse:
        """Convert info in GameModel to a GameResponse (for game with given ID.)"""
        winner = None
        if model.game_status == Status.WHITE_WINS:
            winner = model.players.get(Color.WHITE.value)
        elif model.game_status == Status.BLACK_WINS:
            winner = model.players.get(Color.BLACK.value)

        return GameResponse(
            game_id=game_id,
            snapshot=SnapshotPayload.from_model(model),
            winner=winner,
        )

    def _fetch_game(self, game_id: UUID) -> GameModel:
        """Attempt to find the game in the repository and raise error if it fails."""
        game_model = self.repo.get_game(game_id)
        if game_model is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        return game_model
