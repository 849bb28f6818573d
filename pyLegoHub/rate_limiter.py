# pyLegoHub/rate_limiter.py

import time


class RateLimiter:
    """
    Caps the number of outbound messages per second for one peripheral.
    Callers drop (never queue) a message when okay_to_send() returns False.
    """

    WINDOW_SECONDS = 1.0

    def __init__(self, max_rate: int, clock=time.monotonic):
        self.max_rate = max_rate
        self._clock = clock
        self._window_start = clock()
        self._count = 0

    def okay_to_send(self) -> bool:
        """
        Returns True and counts the send if the current window still has room.
        """
        now = self._clock()
        if now - self._window_start >= self.WINDOW_SECONDS:
            self._window_start = now
            self._count = 0

        if self._count < self.max_rate:
            self._count += 1
            return True
        return False
