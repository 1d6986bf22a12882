import threading
import time

import pytest

from chat_core.concurrency.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def test_first_call_never_waits():
    clock = FakeClock()
    rl = RateLimiter(5.0, clock=clock, sleep=clock.sleep)
    assert rl.wait_turn() == 0.0
    assert clock.sleeps == []
    assert rl.last_request_at == 0.0


def test_waits_for_remaining_interval():
    clock = FakeClock()
    rl = RateLimiter(1.0, clock=clock, sleep=clock.sleep)
    rl.wait_turn()
    clock.now += 0.25
    assert rl.wait_turn() == pytest.approx(0.75)
    assert rl.last_request_at == pytest.approx(1.0)
    clock.now += 2.0
    assert rl.wait_turn() == 0.0
    assert clock.sleeps == [pytest.approx(0.75)]


def test_zero_interval_never_waits():
    clock = FakeClock()
    rl = RateLimiter(0, clock=clock, sleep=clock.sleep)
    for _ in range(5):
        rl.wait_turn()
    assert clock.sleeps == []


def test_negative_interval_rejected():
    with pytest.raises(ValueError):
        RateLimiter(-1)


def test_concurrent_callers_are_serialised():
    # 时钟只在 sleep 中前进：没有锁时多个线程会同时看到旧时间戳并直接放行
    clock = FakeClock()
    rl = RateLimiter(1.0, clock=clock, sleep=clock.sleep)
    threads = [threading.Thread(target=rl.wait_turn) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert sorted(clock.sleeps) == [1.0] * 4
    assert clock.now == 4.0


def test_real_time_gaps():
    interval = 0.1
    rl = RateLimiter(interval)
    releases = []
    lock = threading.Lock()

    def worker():
        rl.wait_turn()
        with lock:
            releases.append(time.monotonic())

    threads = [threading.Thread(target=worker) for _ in range(4)]
    start = time.monotonic()
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    releases.sort()
    assert releases[-1] - start >= interval * 3 - 0.01
    for a, b in zip(releases, releases[1:]):
        assert b - a >= interval - 0.04
