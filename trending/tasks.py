"""Background task set for cache write-backs, joined at the end of a run."""

import concurrent.futures
import threading

from .log import get_logger


class BackgroundTasks:
    """Fire-and-forget relative to the caller, but never detached.

    ``submit`` returns immediately; ``join`` waits for everything submitted so
    far and reports how many tasks failed. Failures are logged, not retried.
    """

    def __init__(self, max_workers: int = 2):
        self._pool = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="trending-bg"
        )
        self._lock = threading.Lock()
        self._futures = {}

    def submit(self, description: str, fn, *args, **kwargs) -> concurrent.futures.Future:
        future = self._pool.submit(fn, *args, **kwargs)
        with self._lock:
            self._futures[future] = description
        return future

    @property
    def pending(self) -> int:
        with self._lock:
            return sum(1 for f in self._futures if not f.done())

    def join(self) -> int:
        """Wait for all submitted tasks. Returns the number that raised."""
        with self._lock:
            futures = dict(self._futures)
            self._futures.clear()

        failures = 0
        for future in concurrent.futures.as_completed(futures):
            try:
                future.result()
            except Exception as e:
                failures += 1
                get_logger("tasks").error("Background task failed (%s): %s", futures[future], e)
        return failures

    def close(self) -> int:
        failures = self.join()
        self._pool.shutdown(wait=True)
        return failures

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False
