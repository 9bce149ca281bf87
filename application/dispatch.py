"""Fire-and-forget execution for work outside the consistency boundary"""
import asyncio
import logging
from typing import Awaitable, Callable, Set

logger = logging.getLogger(__name__)


class SideEffectDispatcher:
    """Schedules side effects without blocking the caller.

    Failures are logged and swallowed. Task references are held until
    completion so pending work is not garbage collected.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def fire(self, description: str, effect: Callable[[], Awaitable[object]]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._run(description, effect))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, description: str, effect: Callable[[], Awaitable[object]]) -> None:
        try:
            await effect()
        except asyncio.CancelledError:
            logger.warning("Side effect cancelled: %s", description)
            raise
        except Exception:
            logger.exception("Side effect failed: %s", description)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for all outstanding side effects"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
