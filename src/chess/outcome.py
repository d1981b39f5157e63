"""
Result of a game action.

Gameplay mistakes are not exceptional: a rejected action is simply a no-op, and the result says why.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Self


class Rejection(Enum):
    WRONG_PHASE = "wrong_phase"
    UNKNOWN_PLAYER = "unknown_player"
    NOT_YOUR_TURN = "not_your_turn"
    NO_PIECE = "no_piece"
    NOT_YOUR_PIECE = "not_your_piece"
    OUTSIDE_ZONE = "outside_zone"
    SQUARE_OCCUPIED = "square_occupied"
    INSUFFICIENT_BUDGET = "insufficient_budget"
    KING_ALREADY_PLACED = "king_already_placed"
    KING_CANNOT_BE_REMOVED = "king_cannot_be_removed"
    ILLEGAL_DESTINATION = "illegal_destination"
    KING_MISSING = "king_missing"
    UNKNOWN_PRESET = "unknown_preset"
    SAME_SQUARE = "same_square"
    TIMER_INACTIVE = "timer_inactive"


@dataclass(frozen=True)
class ActionResult:
    accepted: bool
    reason: Optional[Rejection] = None
    notice: Optional[str] = None

    @classmethod
    def ok(cls, notice: Optional[str] = None) -> Self:
        return cls(accepted=True, notice=notice)

    @classmethod
    def rejected(cls, reason: Rejection) -> Self:
        return cls(accepted=False, reason=reason)

    def __bool__(self) -> bool:
        return self.accepted
