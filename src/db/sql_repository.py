"""Implementation of the repositories using SQLAlchemy"""

from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.core.models import GameModel, SavedSetupModel
from src.db.schema import DBGame, DBSavedSetup

# Snapshot fields are stored column for column
SNAPSHOT_FIELDS: tuple[str, ...] = (
    "board",
    "phase",
    "current_turn",
    "move_history",
    "game_status",
    "white_budget",
    "black_budget",
    "white_setup_complete",
    "black_setup_complete",
    "fog_of_war_enabled",
    "move_time_limit",
    "time_remaining_white",
    "time_remaining_black",
    "players",
    "version",
)


class SQLGameRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    # --- GAMES ---
    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists."""
        game_db = self._fetch_game(game_id)
        if game_db:
            return self._to_model(game_db)
        return None

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Store new game and return the stored data + newly created game ID."""
        new_id = uuid4()
        game_db = DBGame(id=new_id, **self._to_columns(game))
        self.db.add(game_db)
        self.db.commit()
        self.db.refresh(game_db)
        return self._to_model(game_db), new_id

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Replace the stored snapshot."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        for column, value in self._to_columns(game).items():
            setattr(game_db, column, value)
        self.db.commit()
        self.db.refresh(game_db)
        return self._to_model(game_db)

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Remove a game's record."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        game_model = self._to_model(game_db)
        self.db.delete(game_db)
        self.db.commit()
        return game_model

    # --- SAVED SETUPS ---
    def save_setup(self, owner: str, setup: SavedSetupModel) -> SavedSetupModel:
        """Store a layout. Overwrites the owner's layout with the same name."""
        setup_db = self._fetch_setup(owner, setup.name)
        if setup_db is None:
            setup_db = DBSavedSetup(owner=owner, name=setup.name)
            self.db.add(setup_db)
        setup_db.side = setup.side
        setup_db.pieces = dict(setup.pieces)
        setup_db.budget = setup.budget
        self.db.commit()
        self.db.refresh(setup_db)
        return self._to_setup_model(setup_db)

    def get_setups(self, owner: str) -> list[SavedSetupModel]:
        query = (
            select(DBSavedSetup)
            .where(DBSavedSetup.owner == owner)
            .order_by(DBSavedSetup.name)
        )
        return [self._to_setup_model(setup_db) for setup_db in self.db.scalars(query)]

    def delete_setup(self, owner: str, name: str) -> SavedSetupModel | None:
        setup_db = self._fetch_setup(owner, name)
        if setup_db is None:
            return None
        setup_model = self._to_setup_model(setup_db)
        self.db.delete(setup_db)
        self.db.commit()
        return setup_model

    # -- Internal helpers --
    def _fetch_game(self, game_id: UUID) -> DBGame | None:
        query = select(DBGame).where(DBGame.id == game_id)
        return self.db.scalar(query)

    def _fetch_setup(self, owner: str, name: str) -> DBSavedSetup | None:
        query = select(DBSavedSetup).where(
            DBSavedSetup.owner == owner, DBSavedSetup.name == name
        )
        return self.db.scalar(query)

    def _to_columns(self, game: GameModel) -> dict:
        return {field_name: getattr(game, field_name) for field_name in SNAPSHOT_FIELDS}

    def _to_model(self, game_db: DBGame) -> GameModel:
        """Convert SQLAlchemy model to data transfer model."""
        return GameModel(
            **{field_name: getattr(game_db, field_name) for field_name in SNAPSHOT_FIELDS}
        )

    def _to_setup_model(self, setup_db: DBSavedSetup) -> SavedSetupModel:
        return SavedSetupModel(
            name=setup_db.name,
            side=setup_db.side,
            pieces=dict(setup_db.pieces),
            budget=setup_db.budget,
        )
