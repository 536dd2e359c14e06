import time


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds; only differences are meaningful."""
    return time.monotonic() * 1000.0


def elapsed_ms(start_ms: float) -> float:
    """Milliseconds since `start_ms` (a `monotonic_ms()` reading), never negative."""
    return max(0.0, monotonic_ms() - start_ms)

"""
Example usage:
from order_poller.utils.timer import monotonic_ms, elapsed_ms

t0 = monotonic_ms()
records = source.fetch()
log_info(logger, "fetched", n=len(records), elapsed_ms=round(elapsed_ms(t0), 3))
"""
