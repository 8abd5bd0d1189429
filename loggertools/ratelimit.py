"""A leaky-bucket rate limiter that spaces calls evenly."""

import time


class RateLimiter:
    """Blocks in take() so that calls happen at most ``rate`` times a second."""

    def __init__(self, rate, clock=time.monotonic, sleep=time.sleep):
        if rate <= 0:
            raise ValueError("rate must be positive")
        self._per = 1.0 / rate
        self._max_slack = -10 * self._per
        self._clock = clock
        self._sleep = sleep
        self._last = None
        self._sleep_for = 0.0

    def take(self):
        """Wait until the next call is allowed and return its time."""
        now = self._clock()
        if self._last is None:
            self._last = now
            return now

        self._sleep_for += self._per - (now - self._last)
        if self._sleep_for < self._max_slack:
            self._sleep_for = self._max_slack

        if self._sleep_for > 0:
            self._sleep(self._sleep_for)
            self._last = now + self._sleep_for
            self._sleep_for = 0.0
        else:
            self._last = now
        return self._last