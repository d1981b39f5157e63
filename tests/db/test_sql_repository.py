"""Unit tests for src/db/sql_repository.py"""

from dataclasses import replace
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from src.chess.game import Game
from src.core.models import GameModel, SavedSetupModel
from src.db.sql_repository import SQLGameRepository


@pytest.fixture
def snapshot() -> GameModel:
    """A game in setup: both Kings on their home squares"""
    game = Game.new_game("player_white", "white", fog_of_war=True, move_time_limit=60)
    game.register_player("player_black")
    return game.to_model()


def test_create_game(db_session_repo: Session, snapshot: GameModel) -> None:
    """Conversion from a GameModel to DBGame for a new entry to the database."""
    repo = SQLGameRepository(db_session_repo)
    record_in_db, _ = repo.create_game(snapshot)
    assert isinstance(record_in_db, GameModel)
    assert record_in_db == snapshot


def test_get_game_by_id(db_session_repo: Session, snapshot: GameModel) -> None:
    """Create a game, then fetch it from db. The board (JSON column) comes back cell for cell."""
    repo = SQLGameRepository(db_session_repo)
    expected_game, game_id = repo.create_game(snapshot)
    game_found = repo.get_game(game_id)
    assert game_found == expected_game
    assert game_found is not None
    assert game_found.board[7][4] == {"kind": "king", "side": "white"}
    assert Game.from_model(game_found).to_model() == snapshot


def test_get_unknown_game(db_session_repo: Session, snapshot: GameModel) -> None:
    """Should return None if ID does not match anything in database."""
    repo = SQLGameRepository(db_session_repo)
    assert repo.get_game(uuid4()) is None

    repo.create_game(snapshot)
    assert repo.get_game(uuid4()) is None


def test_consecutive_game_updates(db_session_repo: Session, snapshot: GameModel) -> None:
    """Multiple updates to the same game: the last one is what is stored"""
    repo = SQLGameRepository(db_session_repo)
    _, game_id = repo.create_game(snapshot)

    game = Game.from_model(snapshot)
    for _ in range(2):
        game.finish_setup(game.players[game.current_turn])
        repo.update_game(game_id, game.to_model())

    after_all_updates = repo.get_game(game_id)
    assert after_all_updates == game.to_model()
    assert after_all_updates is not None
    assert after_all_updates.phase == "playing"


def test_attempt_updating_unknown_game(db_session_repo: Session, snapshot: GameModel) -> None:
    repo = SQLGameRepository(db_session_repo)
    assert repo.update_game(uuid4(), snapshot) is None


def test_delete_game(db_session_repo: Session, snapshot: GameModel) -> None:
    """Record of the game should no longer exist after deletion"""
    repo = SQLGameRepository(db_session_repo)
    created_game, game_id = repo.create_game(snapshot)
    assert repo.delete_game(game_id) == created_game
    assert repo.get_game(game_id) is None
    assert repo.delete_game(game_id) is None


# --- SAVED SETUPS ---
def _setup(name: str, budget: int = 34) -> SavedSetupModel:
    return SavedSetupModel(
        name=name, side="white", pieces={"e1": "king", "a1": "rook"}, budget=budget
    )


def test_save_and_list_setups(db_session_repo: Session) -> None:
    repo = SQLGameRepository(db_session_repo)
    repo.save_setup("alice", _setup("rooks"))
    repo.save_setup("alice", _setup("aggressive"))
    repo.save_setup("bob", _setup("bobs own"))

    setups = repo.get_setups("alice")
    assert [setup.name for setup in setups] == ["aggressive", "rooks"]
    assert setups[1] == _setup("rooks")
    assert repo.get_setups("carol") == []


def test_save_setup_overwrites_same_name(db_session_repo: Session) -> None:
    repo = SQLGameRepository(db_session_repo)
    repo.save_setup("alice", _setup("rooks", budget=34))
    replacement = replace(_setup("rooks", budget=30), pieces={"e1": "king", "d2": "queen"})
    stored = repo.save_setup("alice", replacement)
    assert stored == replacement
    assert repo.get_setups("alice") == [replacement]


def test_delete_setup(db_session_repo: Session) -> None:
    repo = SQLGameRepository(db_session_repo)
    repo.save_setup("alice", _setup("rooks"))
    assert repo.delete_setup("alice", "rooks") == _setup("rooks")
    assert repo.get_setups("alice") == []
    assert repo.delete_setup("alice", "rooks") is None
