"""
HTTP routes.

Thin layer: parse the request (pydantic), hand it to the service, return the response model.
Gameplay mistakes come back as 200 with `accepted: false`. Only boundary errors (GameError) become HTTP errors (see main.py).

Handlers are `async`: requests and the turn clocks share the one event loop and run one at a time.
The clock of a game is started when play begins (finishing the draft, or a synced snapshot that is in play).
"""

from contextlib import contextmanager
from typing import Generator, TypeVar
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from src.api.models import (
    ActionResponse,
    CreateGameRequest,
    DeleteGameRequest,
    DeleteSetupRequest,
    GameRequest,
    GameResponse,
    GetGameRequest,
    JoinGameRequest,
    LegalMovesRequest,
    LegalMovesResponse,
    MoveRequest,
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
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Phase
from src.db.database import SessionLocal, get_db
from src.db.sql_repository import SQLGameRepository
from src.services.broadcast import InMemoryBroadcaster
from src.services.budget_chess_service import BudgetChessService
from src.services.clock import TurnClocks

BROADCASTER = InMemoryBroadcaster()

router = APIRouter()

RequestT = TypeVar("RequestT", bound=GameRequest)


def get_service(db: Session = Depends(get_db)) -> BudgetChessService:
    return BudgetChessService(SQLGameRepository(db), BROADCASTER)


@contextmanager
def service_session() -> Generator[BudgetChessService, None, None]:
    """A service with a database session of its own, for work outside of a request (the turn clocks)"""
    db = SessionLocal()
    try:
        yield BudgetChessService(SQLGameRepository(db), BROADCASTER)
    finally:
        db.close()


CLOCKS = TurnClocks(service_session)


def get_clocks() -> TurnClocks:
    return CLOCKS


def _start_clock(clocks: TurnClocks, game: GameResponse) -> None:
    """Play (re)started with a time limit: the game's clock has to run"""
    snapshot = game.snapshot
    if snapshot.phase == Phase.PLAYING and snapshot.move_time_limit > 0:
        clocks.ensure_running(game.game_id)


def _for_game(game_id: UUID, request: RequestT) -> RequestT:
    """The game in the path and the game in the body must be the same one"""
    if request.game_id != game_id:
        raise InvalidRequestError(
            f"Request body is about game {request.game_id}, not {game_id}."
        )
    return request


# --- LOBBY ---
@router.post("/games", response_model=GameResponse)
async def create_game(
    request: CreateGameRequest, service: BudgetChessService = Depends(get_service)
) -> GameResponse:
    return service.create_game(request)


@router.post("/games/{game_id}/join", response_model=GameResponse)
async def join_game(
    game_id: UUID,
    request: JoinGameRequest,
    service: BudgetChessService = Depends(get_service),
) -> GameResponse:
    return service.join_game(_for_game(game_id, request))


@router.get("/games/{game_id}", response_model=GameResponse)
async def get_game(
    game_id: UUID, service: BudgetChessService = Depends(get_service)
) -> GameResponse:
    return service.get_game(GetGameRequest(game_id=game_id))


@router.get("/games/{game_id}/view/{player_name}", response_model=PlayerViewResponse)
async def get_player_view(
    game_id: UUID, player_name: str, service: BudgetChessService = Depends(get_service)
) -> PlayerViewResponse:
    return service.get_player_view(
        PlayerActionRequest(game_id=game_id, player_name=player_name)
    )


@router.delete("/games/{game_id}", status_code=204)
async def delete_game(game_id: UUID, service: BudgetChessService = Depends(get_service)) -> None:
    service.delete_game(DeleteGameRequest(game_id=game_id))


# --- SETUP ---
@router.post("/games/{game_id}/setup/place", response_model=ActionResponse)
async def place_piece(
    game_id: UUID,
    request: PlacePieceRequest,
    service: BudgetChessService = Depends(get_service),
) -> ActionResponse:
    return service.place_piece(_for_game(game_id, request))


@router.post("/games/{game_id}/setup/move", response_model=ActionResponse)
async def move_setup_piece(
    game_id: UUID,
    request: MoveRequest,
    service: BudgetChessService = Depends(get_service),
) -> ActionResponse:
    return service.move_setup_piece(_for_game(game_id, request))


@router.post("/games/{game_id}/setup/remove", response_model=ActionResponse)
async def remove_piece(
    game_id: UUID,
    request: RemovePieceRequest,
    service: BudgetChessService = Depends(get_service),
) -> ActionResponse:
    return service.remove_piece(_for_game(game_id, request))


@router.post("/games/{game_id}/setup/preset", response_model=ActionResponse)
async def apply_preset(
    game_id: UUID,
    request: PresetRequest,
    service: BudgetChessService = Depends(get_service),
) -> ActionResponse:
    return service.apply_preset(_for_game(game_id, request))


@router.post("/games/{game_id}/setup/save", response_model=SavedSetupResponse)
async def save_setup(
    game_id: UUID,
    request: SaveSetupRequest,
    service: BudgetChessService = Depends(get_service),
) -> SavedSetupResponse:
    return service.save_setup(_for_game(game_id, request))


@router.post("/games/{game_id}/setup/finish", response_model=ActionResponse)
async def finish_setup(
    game_id: UUID,
    request: PlayerActionRequest,
    service: BudgetChessService = Depends(get_service),
    clocks: TurnClocks = Depends(get_clocks),
) -> ActionResponse:
    response = service.finish_setup(_for_game(game_id, request))
    _start_clock(clocks, response.game)
    return response


@router.post("/games/{game_id}/setup/reset", response_model=ActionResponse)
async def reset_side(
    game_id: UUID,
    request: PlayerActionRequest,
    service: BudgetChessService = Depends(get_service),
) -> ActionResponse:
    return service.reset_side(_for_game(game_id, request))


@router.post("/games/{game_id}/reset", response_model=ActionResponse)
async def reset_game(
    game_id: UUID,
    request: PlayerActionRequest,
    service: BudgetChessService = Depends(get_service),
) -> ActionResponse:
    return service.reset_game(_for_game(game_id, request))


@router.get("/setups/{player_name}", response_model=list[SavedSetupResponse])
async def list_setups(
    player_name: str, service: BudgetChessService = Depends(get_service)
) -> list[SavedSetupResponse]:
    return service.list_setups(player_name)


@router.delete("/setups/{player_name}/{setup_name}", status_code=204)
async def delete_setup(
    player_name: str, setup_name: str, service: BudgetChessService = Depends(get_service)
) -> None:
    service.delete_setup(
        DeleteSetupRequest(player_name=player_name, setup_name=setup_name)
    )


# --- PLAY ---
@router.post("/games/{game_id}/legal-moves", response_model=LegalMovesResponse)
async def legal_moves(
    game_id: UUID,
    request: LegalMovesRequest,
    service: BudgetChessService = Depends(get_service),
) -> LegalMovesResponse:
    return service.legal_moves(_for_game(game_id, request))


@router.post("/games/{game_id}/move", response_model=ActionResponse)
async def make_move(
    game_id: UUID,
    request: MoveRequest,
    service: BudgetChessService = Depends(get_service),
) -> ActionResponse:
    return service.make_move(_for_game(game_id, request))


@router.post("/games/{game_id}/tick", response_model=ActionResponse)
async def tick(game_id: UUID, service: BudgetChessService = Depends(get_service)) -> ActionResponse:
    return service.tick(TickRequest(game_id=game_id))


@router.put("/games/{game_id}/snapshot", response_model=GameResponse)
async def sync_snapshot(
    game_id: UUID,
    snapshot: SnapshotPayload,
    service: BudgetChessService = Depends(get_service),
    clocks: TurnClocks = Depends(get_clocks),
) -> GameResponse:
    response = service.sync_snapshot(SyncSnapshotRequest(game_id=game_id, snapshot=snapshot))
    _start_clock(clocks, response)
    return response
