"""
Type definitions used across layers
"""

from enum import StrEnum


class Phase(StrEnum):
    WAITING_FOR_OPPONENT = "waiting_for_opponent"
    SETUP = "setup"
    PLAYING = "playing"
    GAME_OVER = "game_over"


class Status(StrEnum):
    WAITING_FOR_OPPONENT = "waiting for opponent"
    IN_PROGRESS = "in progress"
    WHITE_WINS = "white wins"
    BLACK_WINS = "black wins"
    # NOTE: not reachable by the rules themselves, only by an external forfeit policy
    DRAW = "draw"


# --- NOTE: the domain layer has its own Side / PieceKind enums (src/chess/pieces.py). These are the transport versions.
# --- Values are identical, so converting is always `Side(color.value)` and back.


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"


class PieceType(StrEnum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"
