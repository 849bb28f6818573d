# pyLegoHub/timers.py

import asyncio
import time
from typing import Callable, Optional


class DeferredAction:
    """
    A single cancellable scheduled callback.

    Scheduling always cancels the previous callback first, so at most one is
    pending. Every schedule or cancel bumps the token; a callback that fires
    with a stale token does nothing.
    """

    def __init__(self):
        self._token = 0
        self._handle: Optional[asyncio.TimerHandle] = None
        self.start_time: Optional[float] = None
        self.delay_ms: Optional[float] = None

    @property
    def token(self) -> int:
        return self._token

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, callback: Callable[[], None], delay_ms: float) -> int:
        self.cancel()
        token = self._token
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(max(0.0, delay_ms) / 1000.0, self._fire, token, callback)
        self.start_time = time.monotonic()
        self.delay_ms = delay_ms
        return token

    def cancel(self):
        self._token += 1
        if self._handle is not None:
            self._handle.cancel()
        self._clear()

    def remaining_ms(self) -> float:
        if not self.pending:
            return 0.0
        elapsed = (time.monotonic() - self.start_time) * 1000.0
        return self.delay_ms - elapsed

    def _fire(self, token: int, callback: Callable[[], None]):
        if token != self._token:
            return
        self._clear()
        callback()

    def _clear(self):
        self._handle = None
        self.start_time = None
        self.delay_ms = None
