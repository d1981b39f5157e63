"""
Configuration loading for Budget Chess.

- Reads environment variables once at import time and exposes SETTINGS.
- Only operational knobs live here. Rule constants (budget, piece costs, placement zones) belong to the domain and are not configurable.
"""

import os
from dataclasses import dataclass
from typing import Any, Callable


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _get(name: str, default: Any, cast: Callable[[str], Any] | None = None) -> Any:
    env = os.environ.get(name)
    if env is None:
        return default
    return cast(env) if cast else env


@dataclass(frozen=True)
class Settings:
    # Persistence
    database_url: str

    # Defaults offered to a player creating a game
    default_move_time_limit: int
    default_fog_of_war: bool

    # Runtime
    clock_interval_s: float
    log_level: str


SETTINGS = Settings(
    database_url=_get("BUDGET_CHESS_DATABASE_URL", "sqlite:///budget_chess.db"),
    default_move_time_limit=_get("BUDGET_CHESS_DEFAULT_MOVE_TIME_LIMIT", 300, cast=int),
    default_fog_of_war=_get("BUDGET_CHESS_DEFAULT_FOG_OF_WAR", False, cast=_as_bool),
    clock_interval_s=_get("BUDGET_CHESS_CLOCK_INTERVAL_S", 1.0, cast=float),
    log_level=_get("BUDGET_CHESS_LOG_LEVEL", "INFO").upper(),
)
