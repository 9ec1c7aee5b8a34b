"""Timer seam shared by the debounce, cooldown and animation loops.

Production code runs on the asyncio loop clock; tests substitute a
manually advanced scheduler.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol


class Cancellable(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Monotonic clock plus one-shot timers."""

    def time(self) -> float:
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        ...


class LoopScheduler:
    """:class:`Scheduler` backed by an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    def time(self) -> float:
        return self._loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._loop.call_later(max(0.0, delay), callback)
