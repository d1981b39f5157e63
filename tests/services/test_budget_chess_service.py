"""Unit tests for src/services/budget_chess_service.py"""

from dataclasses import replace
from uuid import UUID, uuid4

import pytest

from src.api.models import (
    CreateGameRequest,
    DeleteGameRequest,
    DeleteSetupRequest,
    GameResponse,
    GetGameRequest,
    JoinGameRequest,
    LegalMovesRequest,
    MoveRequest,
    PlacePieceRequest,
    PlayerActionRequest,
    PresetRequest,
    RemovePieceRequest,
    SaveSetupRequest,
    SnapshotPayload,
    SyncSnapshotRequest,
    TickRequest,
)
from src.core.exceptions import (
    GameError,
    GameStateError,
    RepositoryError,
    SnapshotError,
    StaleSnapshotError,
)
from src.core.models import GameModel
from src.core.shared_types import Color, Phase, PieceType, Status
from src.services.broadcast import InMemoryBroadcaster
from src.services.budget_chess_service import BudgetChessService
from tests.mock_repository import MockRepository

WHITE_PLAYER = "Mocker M. Mockerson"
BLACK_PLAYER = "Mock McMock"


@pytest.fixture
def broadcaster() -> InMemoryBroadcaster:
    return InMemoryBroadcaster()


@pytest.fixture
def service(mock_repository: MockRepository, broadcaster: InMemoryBroadcaster) -> BudgetChessService:
    return BudgetChessService(mock_repository, broadcaster)


@pytest.fixture
def game_id(service: BudgetChessService) -> UUID:
    """Both players joined, White is drafting"""
    response = service.create_game(
        CreateGameRequest(player_name=WHITE_PLAYER, color=Color.WHITE, move_time_limit=5)
    )
    service.join_game(JoinGameRequest(game_id=response.game_id, player_name=BLACK_PLAYER))
    return response.game_id


def _start_playing(service: BudgetChessService, game_id: UUID) -> None:
    for player in (WHITE_PLAYER, BLACK_PLAYER):
        response = service.finish_setup(PlayerActionRequest(game_id=game_id, player_name=player))
        assert response.accepted


# --- LOBBY ----
def test_create_a_new_game(service: BudgetChessService, mock_repository: MockRepository) -> None:
    """Check that new game is created, persisted in repo, and return has the appropriate information."""
    response = service.create_game(
        CreateGameRequest(player_name=WHITE_PLAYER, color=Color.BLACK, fog_of_war_enabled=True)
    )
    assert isinstance(response, GameResponse)
    assert response.snapshot.phase == Phase.WAITING_FOR_OPPONENT
    assert response.snapshot.players == {Color.BLACK: WHITE_PLAYER}
    assert response.snapshot.fog_of_war_enabled
    assert response.winner is None

    stored_game = mock_repository.get_game(response.game_id)
    assert stored_game is not None
    assert stored_game.game_status == Status.WAITING_FOR_OPPONENT
    assert stored_game.white_budget == 39


def test_second_player_joins_game(service: BudgetChessService, game_id: UUID) -> None:
    response = service.get_game(GetGameRequest(game_id=game_id))
    assert response.snapshot.players == {Color.WHITE: WHITE_PLAYER, Color.BLACK: BLACK_PLAYER}
    assert response.snapshot.phase == Phase.SETUP
    assert response.snapshot.board[7][4] is not None


def test_third_player_cannot_join(service: BudgetChessService, game_id: UUID) -> None:
    with pytest.raises(GameStateError):
        service.join_game(JoinGameRequest(game_id=game_id, player_name="carol"))


def test_unknown_game(service: BudgetChessService) -> None:
    """Any top-level custom exception is raised (specific types are the responsibility of other layers)"""
    with pytest.raises(GameError):
        service.get_game(GetGameRequest(game_id=uuid4()))
    with pytest.raises(RepositoryError):
        service.make_move(
            MoveRequest(game_id=uuid4(), player_name=WHITE_PLAYER, from_square="e1", to_square="e2")
        )


def test_delete_game(service: BudgetChessService, game_id: UUID) -> None:
    service.delete_game(DeleteGameRequest(game_id=game_id))
    with pytest.raises(RepositoryError):
        service.get_game(GetGameRequest(game_id=game_id))
    with pytest.raises(RepositoryError):
        service.delete_game(DeleteGameRequest(game_id=game_id))


# --- SETUP ----
def test_place_piece_is_persisted_and_broadcast(
    service: BudgetChessService,
    broadcaster: InMemoryBroadcaster,
    mock_repository: MockRepository,
    game_id: UUID,
) -> None:
    received: list[GameModel] = []
    broadcaster.subscribe(game_id, lambda _, snapshot: received.append(snapshot))

    response = service.place_piece(
        PlacePieceRequest(
            game_id=game_id, player_name=WHITE_PLAYER, square="d1", piece_type=PieceType.QUEEN
        )
    )
    assert response.accepted
    assert response.game.snapshot.white_budget == 30

    stored = mock_repository.get_game(game_id)
    assert stored is not None
    assert stored.board[7][3] == {"kind": "queen", "side": "white"}
    assert received == [stored]


def test_rejected_action_is_not_persisted(
    service: BudgetChessService,
    broadcaster: InMemoryBroadcaster,
    mock_repository: MockRepository,
    game_id: UUID,
) -> None:
    received: list[GameModel] = []
    broadcaster.subscribe(game_id, lambda _, snapshot: received.append(snapshot))
    updates = mock_repository.updates

    response = service.place_piece(
        PlacePieceRequest(
            game_id=game_id, player_name=BLACK_PLAYER, square="d8", piece_type=PieceType.QUEEN
        )
    )
    assert not response.accepted
    assert response.reason == "not_your_turn"
    assert mock_repository.updates == updates
    assert received == []


def test_setup_moves_and_removal(service: BudgetChessService, game_id: UUID) -> None:
    service.place_piece(
        PlacePieceRequest(
            game_id=game_id, player_name=WHITE_PLAYER, square="b1", piece_type=PieceType.KNIGHT
        )
    )
    moved = service.move_setup_piece(
        MoveRequest(game_id=game_id, player_name=WHITE_PLAYER, from_square="b1", to_square="c3")
    )
    assert moved.accepted
    assert moved.game.snapshot.board[5][2] is not None

    removed = service.remove_piece(
        RemovePieceRequest(game_id=game_id, player_name=WHITE_PLAYER, square="c3")
    )
    assert removed.accepted
    assert removed.game.snapshot.white_budget == 39


def test_save_and_apply_setup(service: BudgetChessService, game_id: UUID) -> None:
    """Save a layout as White in one game, use it as Black in another"""
    service.place_piece(
        PlacePieceRequest(
            game_id=game_id, player_name=WHITE_PLAYER, square="a1", piece_type=PieceType.ROOK
        )
    )
    saved = service.save_setup(
        SaveSetupRequest(game_id=game_id, player_name=WHITE_PLAYER, setup_name="rook")
    )
    assert saved.pieces == {"e1": PieceType.KING, "a1": PieceType.ROOK}
    assert saved.budget == 34
    assert [setup.name for setup in service.list_setups(WHITE_PLAYER)] == ["rook"]

    other = service.create_game(CreateGameRequest(player_name=WHITE_PLAYER, color=Color.BLACK))
    service.join_game(JoinGameRequest(game_id=other.game_id, player_name=BLACK_PLAYER))
    service.finish_setup(PlayerActionRequest(game_id=other.game_id, player_name=BLACK_PLAYER))

    response = service.apply_preset(
        PresetRequest(game_id=other.game_id, player_name=WHITE_PLAYER, preset_name="rook")
    )
    assert response.accepted
    assert response.game.snapshot.board[0][0] is not None
    assert response.game.snapshot.black_budget == 34


def test_save_setup_outside_setup(service: BudgetChessService, game_id: UUID) -> None:
    _start_playing(service, game_id)
    with pytest.raises(GameStateError):
        service.save_setup(
            SaveSetupRequest(game_id=game_id, player_name=WHITE_PLAYER, setup_name="late")
        )


def test_delete_setup(service: BudgetChessService, game_id: UUID) -> None:
    service.save_setup(
        SaveSetupRequest(game_id=game_id, player_name=WHITE_PLAYER, setup_name="king only")
    )
    service.delete_setup(DeleteSetupRequest(player_name=WHITE_PLAYER, setup_name="king only"))
    assert service.list_setups(WHITE_PLAYER) == []
    with pytest.raises(RepositoryError):
        service.delete_setup(DeleteSetupRequest(player_name=WHITE_PLAYER, setup_name="king only"))


def test_classic_preset_and_reset(service: BudgetChessService, game_id: UUID) -> None:
    response = service.apply_preset(
        PresetRequest(game_id=game_id, player_name=WHITE_PLAYER, preset_name="classic")
    )
    assert response.accepted
    assert response.game.snapshot.white_budget == 0

    response = service.reset_side(PlayerActionRequest(game_id=game_id, player_name=WHITE_PLAYER))
    assert response.game.snapshot.white_budget == 39


# --- PLAYING ----
def test_play_a_move(service: BudgetChessService, game_id: UUID) -> None:
    _start_playing(service, game_id)
    moves = service.legal_moves(
        LegalMovesRequest(game_id=game_id, player_name=WHITE_PLAYER, square="e1")
    )
    assert set(moves.visible) == {"d1", "f1", "d2", "e2", "f2"}
    assert moves.fogged == []

    response = service.make_move(
        MoveRequest(game_id=game_id, player_name=WHITE_PLAYER, from_square="e1", to_square="e2")
    )
    assert response.accepted
    assert response.game.snapshot.move_history == ["e1-e2"]
    assert response.game.snapshot.current_turn == Color.BLACK


def test_tick(service: BudgetChessService, game_id: UUID) -> None:
    assert service.tick(TickRequest(game_id=game_id)).reason == "timer_inactive"

    _start_playing(service, game_id)
    response = service.tick(TickRequest(game_id=game_id))
    assert response.accepted
    assert response.game.snapshot.time_remaining_white == 4


def test_player_view(service: BudgetChessService, game_id: UUID) -> None:
    view = service.get_player_view(PlayerActionRequest(game_id=game_id, player_name=BLACK_PLAYER))
    assert view.color == Color.BLACK
    assert len(view.board) == 8
    assert view.board[7][4] is not None  # no fog in this game

    spectator = service.get_player_view(PlayerActionRequest(game_id=game_id, player_name="carol"))
    assert spectator.color is None


def test_winner_in_response(service: BudgetChessService, game_id: UUID) -> None:
    service.place_piece(
        PlacePieceRequest(
            game_id=game_id, player_name=WHITE_PLAYER, square="e3", piece_type=PieceType.ROOK
        )
    )
    _start_playing(service, game_id)
    response = service.make_move(
        MoveRequest(game_id=game_id, player_name=WHITE_PLAYER, from_square="e3", to_square="e8")
    )
    assert response.game.snapshot.game_status == Status.WHITE_WINS
    assert response.game.winner == WHITE_PLAYER


def test_reset_game(service: BudgetChessService, game_id: UUID) -> None:
    _start_playing(service, game_id)
    response = service.reset_game(PlayerActionRequest(game_id=game_id, player_name=BLACK_PLAYER))
    assert response.accepted
    assert response.game.snapshot.phase == Phase.SETUP


# --- REMOTE SNAPSHOTS ----
def test_sync_newer_snapshot(
    service: BudgetChessService, mock_repository: MockRepository, game_id: UUID
) -> None:
    stored = mock_repository.get_game(game_id)
    assert stored is not None
    incoming = replace(stored, white_budget=30, version=stored.version + 1)
    incoming.board = [list(row) for row in stored.board]
    incoming.board[7][3] = {"kind": "queen", "side": "white"}

    response = service.sync_snapshot(
        SyncSnapshotRequest(game_id=game_id, snapshot=SnapshotPayload.from_model(incoming))
    )
    assert response.snapshot.version == incoming.version
    assert mock_repository.get_game(game_id) == incoming


def test_sync_stale_snapshot(
    service: BudgetChessService, mock_repository: MockRepository, game_id: UUID
) -> None:
    service.place_piece(
        PlacePieceRequest(
            game_id=game_id, player_name=WHITE_PLAYER, square="a1", piece_type=PieceType.PAWN
        )
    )
    stored = mock_repository.get_game(game_id)
    assert stored is not None
    stale = replace(stored, version=stored.version - 1)

    with pytest.raises(StaleSnapshotError):
        service.sync_snapshot(
            SyncSnapshotRequest(game_id=game_id, snapshot=SnapshotPayload.from_model(stale))
        )
    assert mock_repository.get_game(game_id) == stored


def test_sync_competing_snapshots_with_same_version(
    service: BudgetChessService, mock_repository: MockRepository, game_id: UUID
) -> None:
    """Two clients both derived version N+1 from N: the first one wins, the second is refused"""
    stored = mock_repository.get_game(game_id)
    assert stored is not None
    first = replace(stored, white_budget=30, version=stored.version + 1)
    second = replace(stored, white_budget=20, version=stored.version + 1)

    service.sync_snapshot(
        SyncSnapshotRequest(game_id=game_id, snapshot=SnapshotPayload.from_model(first))
    )
    with pytest.raises(StaleSnapshotError):
        service.sync_snapshot(
            SyncSnapshotRequest(game_id=game_id, snapshot=SnapshotPayload.from_model(second))
        )

    latest = mock_repository.get_game(game_id)
    assert latest is not None
    assert latest.white_budget == 30


def test_sync_same_snapshot_again(
    service: BudgetChessService, mock_repository: MockRepository, game_id: UUID
) -> None:
    """Resending what is already stored is harmless: nothing is written"""
    stored = mock_repository.get_game(game_id)
    assert stored is not None
    updates = mock_repository.updates

    response = service.sync_snapshot(
        SyncSnapshotRequest(game_id=game_id, snapshot=SnapshotPayload.from_model(stored))
    )
    assert response.snapshot.version == stored.version
    assert mock_repository.updates == updates


def test_sync_snapshot_that_does_not_hydrate(
    service: BudgetChessService, mock_repository: MockRepository, game_id: UUID
) -> None:
    """A payload changed after validation (grid too small) is still refused when hydrating"""
    stored = mock_repository.get_game(game_id)
    assert stored is not None
    payload = SnapshotPayload.from_model(stored)
    payload.board = payload.board[:7]

    with pytest.raises(SnapshotError):
        service.sync_snapshot(SyncSnapshotRequest(game_id=game_id, snapshot=payload))
