"""
Bounded worker pool: admits a new task only when a slot is free.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from categorizer.logging_utils import log_event

logger = logging.getLogger(__name__)


class BoundedWorkerPool:
    """
    Thread pool whose `submit` blocks while `max_in_flight` tasks are running.

    The executor alone would queue every submission in memory; the
    semaphore keeps dispatch in step with completion instead.
    """

    def __init__(self, *, max_in_flight: int, thread_name_prefix: str = "categorize") -> None:
        self.max_in_flight = max(1, max_in_flight)
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_in_flight,
            thread_name_prefix=thread_name_prefix,
        )
        self._slots = threading.BoundedSemaphore(self.max_in_flight)
        self._lock = threading.Lock()
        self._in_flight = 0
        self._peak_in_flight = 0
        self._submitted = 0

    def __enter__(self) -> "BoundedWorkerPool":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.shutdown()

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        with self._lock:
            return self._peak_in_flight

    @property
    def submitted(self) -> int:
        with self._lock:
            return self._submitted

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future[Any]:
        """
        Wait for a free slot, then schedule `fn(*args)`.
        """

        self._slots.acquire()
        with self._lock:
            self._in_flight += 1
            self._submitted += 1
            self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
        try:
            future = self._executor.submit(fn, *args)
        except BaseException:
            self._release()
            raise
        future.add_done_callback(self._on_done)
        return future

    def shutdown(self) -> None:
        """
        Wait for every admitted task to finish.
        """

        self._executor.shutdown(wait=True)

    def _on_done(self, future: Future[Any]) -> None:
        self._release()
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            log_event(
                logger,
                logging.ERROR,
                "worker_task_failed",
                error=repr(exc),
            )

    def _release(self) -> None:
        with self._lock:
            self._in_flight -= 1
        self._slots.release()
