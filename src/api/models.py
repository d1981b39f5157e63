"""Requests and Response models"""

from typing import Optional, Self
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.config import SETTINGS
from src.core.exceptions import InvalidRequestError
from src.core.models import GameModel, SavedSetupModel
from src.core.shared_types import Color, PieceType, Phase, Status

PlayerName = str
SquareName = str
BOARD_SIZE = 8


def _is_algebraic_notation(value: str) -> bool:
    if len(value) != 2:
        return False

    file_character = value[0]
    rank_character = value[1]
    return file_character in "abcdefgh" and rank_character in "12345678"


def validate_square_name(value: str) -> str:
    if not _is_algebraic_notation(value):
        raise InvalidRequestError(
            f"Cannot interpret {value!r} as a valid square name."
        )
    return value


# --- SNAPSHOT MODELS ---
class PieceCell(BaseModel):
    kind: PieceType
    side: Color


class SnapshotPayload(BaseModel):
    """
    Wire version of GameModel. Used both to send the state to clients and to accept an externally produced snapshot (a remote update).
    """

    board: list[list[Optional[PieceCell]]]
    phase: Phase
    current_turn: Color
    move_history: list[str]
    game_status: Status
    white_budget: int = Field(ge=0)
    black_budget: int = Field(ge=0)
    white_setup_complete: bool
    black_setup_complete: bool
    fog_of_war_enabled: bool
    move_time_limit: int = Field(ge=0)
    time_remaining_white: int = Field(ge=0)
    time_remaining_black: int = Field(ge=0)
    players: dict[Color, PlayerName]
    version: int = Field(ge=0)

    @field_validator("board")
    @classmethod
    def validate_board_shape(
        cls, value: list[list[Optional[PieceCell]]]
    ) -> list[list[Optional[PieceCell]]]:
        if len(value) != BOARD_SIZE or any(len(row) != BOARD_SIZE for row in value):
            raise InvalidRequestError(
                f"Board must have {BOARD_SIZE} rows of {BOARD_SIZE} squares."
            )
        return value

    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        return cls.model_validate(model, from_attributes=True)

    def to_model(self) -> GameModel:
        return GameModel(
            board=[
                [
                    {"kind": cell.kind.value, "side": cell.side.value} if cell else None
                    for cell in row
                ]
                for row in self.board
            ],
            phase=self.phase.value,
            current_turn=self.current_turn.value,
            move_history=list(self.move_history),
            game_status=self.game_status.value,
            white_budget=self.white_budget,
            black_budget=self.black_budget,
            white_setup_complete=self.white_setup_complete,
            black_setup_complete=self.black_setup_complete,
            fog_of_war_enabled=self.fog_of_war_enabled,
            move_time_limit=self.move_time_limit,
            time_remaining_white=self.time_remaining_white,
            time_remaining_black=self.time_remaining_black,
            players={color.value: name for color, name in self.players.items()},
            version=self.version,
        )


# --- REQUEST MODELS ---
class GameRequest(BaseModel):
    """Anything addressed to an existing game"""

    game_id: UUID


class CreateGameRequest(BaseModel):
    player_name: PlayerName
    color: Color = Color.WHITE
    fog_of_war_enabled: bool = SETTINGS.default_fog_of_war
    move_time_limit: int = SETTINGS.default_move_time_limit

    @field_validator("move_time_limit")
    @classmethod
    def validate_move_time_limit(cls, value: int) -> int:
        if value < 0:
            raise InvalidRequestError(
                "Move time limit must be 0 (unlimited) or a positive number of seconds."
            )
        return value


class JoinGameRequest(GameRequest):
    player_name: PlayerName


class GetGameRequest(GameRequest):
    pass


class DeleteGameRequest(GameRequest):
    pass


class PlayerActionRequest(GameRequest):
    """finish setup / reset own setup / reset game / view the board: only need to know who is asking"""

    player_name: PlayerName


class LegalMovesRequest(GameRequest):
    player_name: PlayerName
    square: SquareName

    @field_validator("square")
    @classmethod
    def validate_square(cls, value: str) -> str:
        return validate_square_name(value)


class MoveRequest(GameRequest):
    """Used both for moves during play and for relocating a piece during setup"""

    player_name: PlayerName
    from_square: SquareName
    to_square: SquareName

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        return validate_square_name(value)


class PlacePieceRequest(GameRequest):
    player_name: PlayerName
    square: SquareName
    piece_type: PieceType

    @field_validator("square")
    @classmethod
    def validate_square(cls, value: str) -> str:
        return validate_square_name(value)


class RemovePieceRequest(GameRequest):
    player_name: PlayerName
    square: SquareName

    @field_validator("square")
    @classmethod
    def validate_square(cls, value: str) -> str:
        return validate_square_name(value)


class PresetRequest(GameRequest):
    player_name: PlayerName
    preset_name: str


class SaveSetupRequest(GameRequest):
    player_name: PlayerName
    setup_name: str

    @field_validator("setup_name")
    @classmethod
    def validate_setup_name(cls, value: str) -> str:
        if not value.strip():
            raise InvalidRequestError("Please enter a name for your setup.")
        return value.strip()


class DeleteSetupRequest(BaseModel):
    player_name: PlayerName
    setup_name: str


class TickRequest(GameRequest):
    pass


class SyncSnapshotRequest(GameRequest):
    snapshot: SnapshotPayload


# --- RESPONSE MODELS ---
class GameResponse(BaseModel):
    game_id: UUID
    snapshot: SnapshotPayload
    winner: Optional[PlayerName] = None


class ActionResponse(BaseModel):
    """Outcome of a game action. A rejected action did not change the game: `game` shows the unchanged state."""

    accepted: bool
    reason: Optional[str] = None
    notice: Optional[str] = None
    game: GameResponse


class LegalMovesResponse(BaseModel):
    game_id: UUID
    player_name: PlayerName
    square: SquareName
    visible: list[SquareName]
    fogged: list[SquareName]


class PlayerViewResponse(BaseModel):
    """The board as one player gets to see it (everything in the fog removed)"""

    game_id: UUID
    player_name: PlayerName
    color: Optional[Color]
    board: list[list[Optional[PieceCell]]]
    visible: list[list[bool]]


class SavedSetupResponse(BaseModel):
    player_name: PlayerName
    name: str
    side: Color
    pieces: dict[SquareName, PieceType]
    budget: int

    @classmethod
    def from_model(cls, player_name: PlayerName, model: SavedSetupModel) -> Self:
        return cls(
            player_name=player_name,
            name=model.name,
            side=Color(model.side),
            pieces={square: PieceType(kind) for square, kind in model.pieces.items()},
            budget=model.budget,
        )
