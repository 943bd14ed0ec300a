from __future__ import annotations

import time


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds, for elapsed-time metrics."""
    return time.perf_counter() * 1000.0
