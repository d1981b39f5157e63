"""
Turn clock
----

Drives the per-move timer: one tick per interval, on the same cooperative event loop as everything else,
so a tick always runs to completion before the next move/update gets handled (no locks needed).

The API starts one clock per game as soon as play begins (see TurnClocks). A clock stops by itself once ticking
no longer makes sense: the game is over, went back to setup, or has no move time limit.
"""

import asyncio
import logging
from contextlib import AbstractContextManager
from typing import Callable, Optional
from uuid import UUID

from src.api.models import TickRequest
from src.config import SETTINGS
from src.core.exceptions import RepositoryError
from src.services.budget_chess_service import BudgetChessService

log = logging.getLogger(__name__)

ServiceFactory = Callable[[], AbstractContextManager[BudgetChessService]]


async def run_turn_clock(
    service: BudgetChessService,
    game_id: UUID,
    interval: float = SETTINGS.clock_interval_s,
    stop: Optional[asyncio.Event] = None,
    max_ticks: Optional[int] = None,
) -> int:
    """
    Tick the game's clock until the timer is inactive, `stop` is set, or `max_ticks` ticks were made.

    The timer is inactive outside of play (still drafting, game over) and without a move time limit:
    the first rejected tick ends the loop.
    Returns the number of ticks that counted.
    """
    ticks = 0
    request = TickRequest(game_id=game_id)
    while max_ticks is None or ticks < max_ticks:
        if stop is not None and stop.is_set():
            break
        await asyncio.sleep(interval)

        response = service.tick(request)
        if not response.accepted:
            break
        ticks += 1
        if response.notice:
            log.info("Game %s: %s", game_id, response.notice)

    log.debug("Clock of game %s stopped after %d tick(s).", game_id, ticks)
    return ticks


class TurnClocks:
    """
    One running clock task per game in play.

    Every clock gets its own service (and with that its own database session) from `open_service`.
    """

    def __init__(
        self, open_service: ServiceFactory, interval: float = SETTINGS.clock_interval_s
    ) -> None:
        self.open_service = open_service
        self.interval = interval
        self._tasks: dict[UUID, asyncio.Task] = {}

    def ensure_running(self, game_id: UUID) -> bool:
        """Start the clock of a game unless it is already ticking. Must be called from within the event loop."""
        task = self._tasks.get(game_id)
        if task is not None and not task.done():
            return False
        self._tasks[game_id] = asyncio.get_running_loop().create_task(self._run(game_id))
        log.info("Clock of game %s started.", game_id)
        return True

    def is_running(self, game_id: UUID) -> bool:
        task = self._tasks.get(game_id)
        return task is not None and not task.done()

    async def stop_all(self) -> None:
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        # cancelled clocks finish with CancelledError, nothing to report
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    async def _run(self, game_id: UUID) -> None:
        try:
            with self.open_service() as service:
                await run_turn_clock(service, game_id, self.interval)
        except RepositoryError:
            log.info("Game %s is gone, its clock stopped.", game_id)
        finally:
            if self._tasks.get(game_id) is asyncio.current_task():
                del self._tasks[game_id]
