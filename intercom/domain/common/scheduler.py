# intercom/domain/common/scheduler.py
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

TimerKey = Tuple[Hashable, ...]


class Scheduler:
    """
    Deferred, keyed callbacks on the running event loop.

    Keys are tuples whose first element is the house code, e.g.
    ("ABC", "poll", 3). Scheduling an existing key replaces it.
    Callbacks are plain functions: they run to completion on the loop and
    must re-check that the state they target is still current.
    """

    def __init__(self) -> None:
        self._handles: Dict[TimerKey, asyncio.TimerHandle] = {}

    def schedule(self, key: TimerKey, delay: float, callback: Callable[[], None]) -> None:
        self.cancel(key)
        loop = asyncio.get_running_loop()
        self._handles[key] = loop.call_later(max(0.0, delay), self._fire, key, callback)

    def _fire(self, key: TimerKey, callback: Callable[[], None]) -> None:
        self._handles.pop(key, None)
        try:
            callback()
        except Exception:
            logger.exception("timer %s failed", key)

    def cancel(self, key: TimerKey) -> None:
        handle: Optional[asyncio.TimerHandle] = self._handles.pop(key, None)
        if handle is not None:
            handle.cancel()

    def cancel_house(self, house_code: str) -> None:
        for key in [k for k in self._handles if k and k[0] == house_code]:
            self.cancel(key)

    def pending(self) -> list[TimerKey]:
        return list(self._handles)

    def close(self) -> None:
        for key in list(self._handles):
            self.cancel(key)
