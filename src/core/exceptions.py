"""
Custom exceptions.

Gameplay mistakes (illegal moves, out of turn, over budget) are NOT exceptions: the domain answers those with a rejected ActionResult.
The exceptions below are for problems at the boundaries of the domain: broken snapshots, unknown records, invalid requests.
"""


class GameError(Exception):
    """Top-level exception of the application. Anything the API should translate into an error response derives from this."""


class GameStateError(GameError):
    """The game cannot accept the request in its current state (ex. joining a game that already has two players)."""


class SnapshotError(GameError):
    """A snapshot handed to the engine is malformed or incomplete. Fatal to that hydrate attempt."""


class StaleSnapshotError(GameError):
    """A remote snapshot is not newer than the one already stored."""


class InvalidRequestError(GameError):
    """Request could not be interpreted. Raised from the pydantic validators (NOT a ValueError, so pydantic lets it through)."""


class RepositoryError(GameError):
    """Record not found / could not be stored."""
