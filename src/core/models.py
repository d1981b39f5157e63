"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, both the API layer (higher) and domain/db layers (lower) will use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)
"""

from dataclasses import dataclass, field
from typing import Optional

# Type aliases to make GameModel easier to read
PieceColor = str
PlayerName = str
SquareName = str
PieceCell = Optional[dict[str, str]]  # None or {"kind": "rook", "side": "white"}


@dataclass
class GameModel:
    """
    Transport-safe snapshot of a budget chess game used between API, Service, DB, and Game layers.

    The engine hydrates itself from this snapshot, and emits a new one after every accepted mutation.
    There is no delta merge: a remote snapshot replaces the local state wholesale.
    """

    board: list[list[PieceCell]]
    phase: str
    current_turn: PieceColor
    move_history: list[str]
    game_status: str
    white_budget: int
    black_budget: int
    white_setup_complete: bool
    black_setup_complete: bool
    fog_of_war_enabled: bool
    move_time_limit: int
    time_remaining_white: int
    time_remaining_black: int
    players: dict[PieceColor, PlayerName] = field(default_factory=dict)
    version: int = 0


@dataclass
class SavedSetupModel:
    """A named army layout a player saved during setup, so it can be re-applied in a later game."""

    name: str
    side: PieceColor
    pieces: dict[SquareName, str]  # "e1" -> "king"
    budget: int
