import pytest

from loggertools.ratelimit import RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def test_first_take_does_not_sleep():
    clock = FakeClock()
    limiter = RateLimiter(100, clock, clock.sleep)
    assert limiter.take() == 0.0
    assert clock.sleeps == []


def test_back_to_back_takes_are_spaced():
    clock = FakeClock()
    limiter = RateLimiter(100, clock, clock.sleep)
    for _ in range(5):
        limiter.take()
    assert len(clock.sleeps) == 4
    assert all(s == pytest.approx(1 / 100) for s in clock.sleeps)


def test_slow_caller_does_not_sleep():
    clock = FakeClock()
    limiter = RateLimiter(10, clock, clock.sleep)
    limiter.take()
    clock.now += 5.0
    assert limiter.take() == 5.0
    assert clock.sleeps == []


def test_slack_is_bounded():
    clock = FakeClock()
    limiter = RateLimiter(10, clock, clock.sleep)
    limiter.take()
    clock.now += 100.0
    limiter.take()
    start = clock.now
    takes = 30
    for _ in range(takes):
        limiter.take()
    # At most about ten requests' worth of idle time may be carried over.
    assert clock.sleeps
    assert clock.now - start >= (takes - 11) / 10 - 1e-9


@pytest.mark.parametrize("rate", [0, -5])
def test_invalid_rate(rate):
    with pytest.raises(ValueError):
        RateLimiter(rate)