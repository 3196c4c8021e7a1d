"""Performance monitoring utilities for the washroom costing engine."""
import time
import logging
import threading
import functools
from typing import Any, Callable, Dict

logger = logging.getLogger("washroom-api.perf")


def timed(func: Callable) -> Callable:
    """
    Decorator that measures and logs execution time for synchronous functions
    and feeds the module-level ``tracker``.

    Usage::

        @timed
        def calculate_something():
            ...
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        failed = False
        try:
            return func(*args, **kwargs)
        except Exception:
            failed = True
            raise
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            tracker.record(func.__qualname__, duration_ms, failed=failed)
            logger.debug(
                "computation timed",
                extra={"operation": func.__qualname__, "duration_ms": duration_ms},
            )
    return wrapper


def timed_async(func: Callable) -> Callable:
    """Async twin of :func:`timed`, used around collaborator fetches."""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        start = time.perf_counter()
        failed = False
        try:
            return await func(*args, **kwargs)
        except Exception:
            failed = True
            raise
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            tracker.record(func.__qualname__, duration_ms, failed=failed)
            logger.debug(
                "async call timed",
                extra={"operation": func.__qualname__, "duration_ms": duration_ms},
            )
    return wrapper


class PerformanceTracker:
    """
    Thread-safe in-memory counters per timed operation.

    Each operation keeps a fixed-size ``[count, total_ms, max_ms]`` triple, so
    memory stays flat however long the process runs.  Observability only:
    nothing in the costing path reads these numbers.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._stats: Dict[str, list] = {}        # operation -> [count, total_ms, max_ms]
        self._error_counts: Dict[str, int] = {}  # operation -> count

    def record(self, operation: str, duration_ms: float, failed: bool = False) -> None:
        with self._lock:
            stats = self._stats.setdefault(operation, [0, 0.0, 0.0])
            stats[0] += 1
            stats[1] += duration_ms
            stats[2] = max(stats[2], duration_ms)
            if failed:
                self._error_counts[operation] = self._error_counts.get(operation, 0) + 1

    def get_metrics(self) -> Dict[str, Any]:
        """
        Snapshot with keys ``calls_by_operation``, ``avg_duration_ms_by_operation``,
        ``max_duration_ms_by_operation``, ``error_count`` and ``error_count_by_operation``.
        """
        with self._lock:
            return {
                "calls_by_operation": {op: s[0] for op, s in self._stats.items()},
                "avg_duration_ms_by_operation": {
                    op: round(s[1] / s[0], 2) if s[0] else 0.0 for op, s in self._stats.items()
                },
                "max_duration_ms_by_operation": {op: s[2] for op, s in self._stats.items()},
                "error_count": sum(self._error_counts.values()),
                "error_count_by_operation": dict(self._error_counts),
            }

    def reset(self) -> None:
        """Reset all counters (useful in tests)."""
        with self._lock:
            self._stats.clear()
            self._error_counts.clear()


# Module-level singleton -- import this instance everywhere else.
tracker = PerformanceTracker()
