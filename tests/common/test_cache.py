from __future__ import annotations

from src.attendance_tracker.attendance_tracker.common.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_value_is_reused_until_ttl_expires():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    calls = []

    def compute():
        calls.append(1)
        return len(calls)

    assert cache.get_or_compute(("stats", "u1"), 60, compute) == 1
    clock.now = 59
    assert cache.get_or_compute(("stats", "u1"), 60, compute) == 1
    clock.now = 60
    assert cache.get_or_compute(("stats", "u1"), 60, compute) == 2


def test_invalidate_drops_only_that_user():
    cache = TTLCache()
    cache.get_or_compute(("stats", "u1"), 60, lambda: "a")
    cache.get_or_compute(("courses", "u1"), 60, lambda: "b")
    cache.get_or_compute(("stats", "u2"), 60, lambda: "c")

    cache.invalidate("u1")

    assert len(cache) == 1
    assert cache.get_or_compute(("stats", "u2"), 60, lambda: "fresh") == "c"
    assert cache.get_or_compute(("stats", "u1"), 60, lambda: "fresh") == "fresh"


def test_invalidate_all():
    cache = TTLCache()
    cache.get_or_compute(("stats", "u1"), 60, lambda: 1)
    cache.get_or_compute(("stats", "u2"), 60, lambda: 2)

    cache.invalidate()

    assert len(cache) == 0


def test_value_computed_across_an_invalidation_is_not_stored():
    cache = TTLCache()

    def compute():
        cache.invalidate("u1")
        return "stale"

    assert cache.get_or_compute(("stats", "u1"), 60, compute) == "stale"
    assert cache.get_or_compute(("stats", "u1"), 60, lambda: "fresh") == "fresh"


def test_storing_a_value_drops_expired_entries():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.get_or_compute(("stats", "u1"), 60, lambda: "a")
    cache.get_or_compute(("stats", "u2"), 60, lambda: "b")
    cache.get_or_compute(("courses", "u3"), 300, lambda: "c")

    clock.now = 61
    cache.get_or_compute(("stats", "u4"), 60, lambda: "d")

    assert len(cache) == 2
    assert cache.get_or_compute(("courses", "u3"), 300, lambda: "fresh") == "c"
