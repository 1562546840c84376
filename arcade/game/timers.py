from __future__ import annotations

import asyncio
import itertools
import logging
from collections import OrderedDict
from typing import Dict, List, Tuple

from .ports import TimerCallback


class AsyncioTimer:
    """
    Timer port backed by the running asyncio loop. Each ``schedule`` call
    starts one task that sleeps and then invokes the callback on the loop
    thread, so callbacks are serialized with every other handler on the loop.
    """

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._tasks: Dict[int, "asyncio.Task[None]"] = {}

    def schedule(self, delay_ms: int, callback: TimerCallback) -> int:
        handle = next(self._ids)
        loop = asyncio.get_running_loop()
        self._tasks[handle] = loop.create_task(self._run(handle, delay_ms, callback))
        logging.debug(f"[timer-set] handle={handle} delay={delay_ms}ms")
        return handle

    def cancel(self, handle: int) -> None:
        task = self._tasks.pop(handle, None)
        if task:
            task.cancel()
            logging.debug(f"[timer-cancel] handle={handle}")

    def cancel_all(self) -> None:
        for handle in list(self._tasks):
            self.cancel(handle)

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    async def _run(self, handle: int, delay_ms: int, callback: TimerCallback) -> None:
        try:
            await asyncio.sleep(delay_ms / 1000.0)
        except asyncio.CancelledError:
            return
        # Drop the handle first so a cancel() issued from inside the callback is a no-op.
        if self._tasks.pop(handle, None) is None:
            return
        logging.debug(f"[timer-fire] handle={handle}")
        callback()


class ManualTimer:
    """
    Deterministic Timer port for tests. Nothing fires on its own; call
    ``fire_next`` to run the oldest pending callback. Every requested delay is
    kept in ``scheduled`` for assertions.
    """

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._pending: "OrderedDict[int, Tuple[int, TimerCallback]]" = OrderedDict()
        self.scheduled: List[int] = []

    def schedule(self, delay_ms: int, callback: TimerCallback) -> int:
        handle = next(self._ids)
        self._pending[handle] = (delay_ms, callback)
        self.scheduled.append(delay_ms)
        return handle

    def cancel(self, handle: int) -> None:
        self._pending.pop(handle, None)

    def cancel_all(self) -> None:
        self._pending.clear()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def pending_delays(self) -> List[int]:
        return [delay for delay, _ in self._pending.values()]

    def fire_next(self) -> bool:
        """Run the oldest pending callback. Returns False when nothing is pending."""
        if not self._pending:
            return False
        _, (_, callback) = self._pending.popitem(last=False)
        callback()
        return True
