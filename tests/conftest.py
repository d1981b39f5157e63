"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Callable, Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.chess.game import Game
from src.chess.pieces import Piece, PieceKind, Side
from src.chess.square import Position
from src.db.schema import Base

WHITE_PLAYER = "alice"
BLACK_PLAYER = "bob"

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        Base.metadata.drop_all(bind=engine)
        db.close()


# --- DOMAIN FIXTURES ---
@pytest.fixture
def setup_game() -> Game:
    """Both players joined: White is drafting, both Kings on their home squares."""
    game = Game.new_game(WHITE_PLAYER, "white")
    game.register_player(BLACK_PLAYER)
    return game


@pytest.fixture
def game_in_play() -> Callable[..., Game]:
    """
    Call the inner function with the pieces to put on the board ({"e4": (PieceKind.ROOK, Side.WHITE)}).
    Kings are only placed on e1 / e8 if the layout does not contain one.
    """

    def _create_game(
        pieces: dict[str, tuple[PieceKind, Side]] | None = None,
        fog_of_war: bool = False,
        move_time_limit: int = 0,
    ) -> Game:
        game = Game.new_game(
            WHITE_PLAYER, "white", fog_of_war=fog_of_war, move_time_limit=move_time_limit
        )
        game.register_player(BLACK_PLAYER)

        pieces = pieces or {}
        game.board.position.clear()
        for square_name, (kind, side) in pieces.items():
            game.board.place_piece(Piece(kind, side), Position.from_algebraic(square_name))
        for side, home in ((Side.WHITE, "e1"), (Side.BLACK, "e8")):
            if not game.board.has_king(side):
                game.board.place_piece(
                    Piece(PieceKind.KING, side), Position.from_algebraic(home)
                )

        assert game.finish_setup(WHITE_PLAYER)
        assert game.finish_setup(BLACK_PLAYER)
        return game

    return _create_game
