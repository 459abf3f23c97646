"""Worker pool sizing and lifecycle for the submission stage."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
from threading import Lock
from typing import Any, Callable

MAX_WORKERS = 10


def compute_worker_count(unique: int, max_workers: int = MAX_WORKERS) -> int:
    """Grow with the load, one extra worker per ``max_workers`` records, up to the cap."""

    if max_workers < 1:
        raise ValueError("max_workers must be >= 1")
    return min(max_workers, unique // max_workers + 1)


class WorkerPool:
    """Run a fixed number of identical workers and join them."""

    def __init__(self, workers: int, name: str = "submitter") -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self.workers = workers
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix=name)
        self._futures: list[Future[Any]] = []
        self._lock = Lock()

    def start(self, target: Callable[..., Any], *args: Any) -> list[Future[Any]]:
        with self._lock:
            for _ in range(self.workers):
                self._futures.append(self._executor.submit(target, *args))
            return list(self._futures)

    def join(self) -> None:
        """Block until every worker returned, re-raising the first worker crash."""
        with self._lock:
            futures = list(self._futures)
        wait(futures)
        for future in futures:
            future.result()

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
        with self._lock:
            self._futures.clear()


__all__ = ["MAX_WORKERS", "WorkerPool", "compute_worker_count"]
