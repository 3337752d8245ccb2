"""Deferred per-room tasks (AI thinking time, buy-window deadlines)"""

import asyncio
import inspect
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, Set

logger = logging.getLogger(__name__)


class RoomScheduler:
    """
    Runs callbacks after a delay on the event loop, grouped by room so a
    room's pending work can be cancelled when the room is torn down.

    Callbacks are expected to re-check their own preconditions: by the time
    they run, the room may have moved on.
    """

    def __init__(self):
        self._tasks: Dict[str, Set[asyncio.Task]] = defaultdict(set)

    def schedule(self, room_code: str, delay: float, callback: Callable[..., Any], *args) -> asyncio.Task:
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._run_later(room_code, delay, callback, args))
        self._tasks[room_code].add(task)
        task.add_done_callback(lambda t: self._forget(room_code, t))
        return task

    def pending(self, room_code: str) -> int:
        return len(self._tasks.get(room_code, ()))

    def cancel_room(self, room_code: str) -> int:
        """Cancel everything still scheduled for a room; returns how many tasks were cancelled."""
        tasks = self._tasks.pop(room_code, set())
        for task in tasks:
            task.cancel()
        if tasks:
            logger.info(f"Cancelled {len(tasks)} pending task(s) for room {room_code}")
        return len(tasks)

    async def shutdown(self):
        tasks = [task for tasks in self._tasks.values() for task in tasks]
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run_later(self, room_code: str, delay: float, callback: Callable[..., Any], args: tuple):
        try:
            await asyncio.sleep(delay)
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            logger.debug(f"Scheduled task for room {room_code} cancelled")
            raise
        except Exception as e:
            logger.error(f"Scheduled task for room {room_code} failed: {e}", exc_info=True)

    def _forget(self, room_code: str, task: asyncio.Task):
        tasks = self._tasks.get(room_code)
        if tasks is not None:
            tasks.discard(task)
            if not tasks:
                self._tasks.pop(room_code, None)
