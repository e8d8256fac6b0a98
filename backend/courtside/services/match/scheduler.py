import asyncio
from typing import Callable, Optional, Protocol


class Repeating(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def every(self, interval: float, callback: Callable[[], None]) -> Repeating: ...


class LoopRepeating:
    """A callback re-armed on the event loop every ``interval`` seconds until cancelled."""

    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: Callable[[], None]):
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._cancelled = False
        self._handle: Optional[asyncio.TimerHandle] = loop.call_later(interval, self._fire)

    @property
    def active(self) -> bool:
        return not self._cancelled

    def _fire(self) -> None:
        if self._cancelled:
            return
        # Re-arm first so a failing callback does not stop the ticker
        self._handle = self._loop.call_later(self._interval, self._fire)
        self._callback()

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class LoopScheduler:
    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def every(self, interval: float, callback: Callable[[], None]) -> LoopRepeating:
        loop = self._loop or asyncio.get_running_loop()
        return LoopRepeating(loop, interval, callback)
