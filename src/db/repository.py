"""Protocol repositories (SQLAlchemy implementation in sql_repository.py, in-memory ones for tests)"""

from typing import Protocol
from uuid import UUID

from src.core.models import GameModel, SavedSetupModel


class GameRepository(Protocol):
    """Persistence layer orchestration for game snapshots"""

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists."""
        ...

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Store new game and return the stored data + newly created game ID."""
        ...

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Replace the stored snapshot (last write wins)."""
        ...

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Remove a game's record."""
        ...


class SetupRepository(Protocol):
    """Saved army layouts, per player"""

    def save_setup(self, owner: str, setup: SavedSetupModel) -> SavedSetupModel:
        """Store a layout. Overwrites the owner's layout with the same name."""
        ...

    def get_setups(self, owner: str) -> list[SavedSetupModel]:
        """All layouts saved by the owner."""
        ...

    def delete_setup(self, owner: str, name: str) -> SavedSetupModel | None:
        """Remove a layout, if it exists."""
        ...


class Repository(GameRepository, SetupRepository, Protocol):
    """What the service needs: both of the above"""
