"""
Distribution of snapshots to the connected clients.

The real-time transport is an external collaborator. The service only knows the SnapshotPublisher protocol.
InMemoryBroadcaster fans out to local subscribers, on the caller's event loop (no threads, no queues).
"""

import logging
from collections import defaultdict
from typing import Callable, Protocol
from uuid import UUID

from src.core.models import GameModel

log = logging.getLogger(__name__)

SnapshotCallback = Callable[[UUID, GameModel], None]


class SnapshotPublisher(Protocol):
    def publish(self, game_id: UUID, snapshot: GameModel) -> None:
        """Hand the new snapshot to everyone watching the game."""
        ...


class InMemoryBroadcaster:
    """Keeps a list of callbacks per game"""

    def __init__(self) -> None:
        self._subscribers: dict[UUID, list[SnapshotCallback]] = defaultdict(list)

    def subscribe(self, game_id: UUID, callback: SnapshotCallback) -> Callable[[], None]:
        """Register a callback. Returns a function that removes it again."""
        self._subscribers[game_id].append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers.get(game_id, []):
                self._subscribers[game_id].remove(callback)

        return unsubscribe

    def publish(self, game_id: UUID, snapshot: GameModel) -> None:
        callbacks = list(self._subscribers.get(game_id, []))
        log.debug("Publishing version %d of game %s to %d subscriber(s).", snapshot.version, game_id, len(callbacks))
        for callback in callbacks:
            callback(game_id, snapshot)

    def subscriber_count(self, game_id: UUID) -> int:
        return len(self._subscribers.get(game_id, []))
