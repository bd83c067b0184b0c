"""
Append-only result sinks.

Every output file is owned by exactly one writer thread that drains a
bounded queue. Producers block once the queue is full. Appends to one
file are therefore serialized without a lock.
"""

from __future__ import annotations

import csv
import io
import logging
import queue
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generic, TypeVar

from categorizer.domain.records import DomainRecord, ReviewRecord, SinkStats
from categorizer.loading.domain_loader import normalize_domain
from categorizer.logging_utils import log_event

logger = logging.getLogger(__name__)

T = TypeVar("T")

_STOP = object()
_TAIL_CHUNK_BYTES = 64 * 1024


class SinkWriteError(OSError):
    """
    Raised when one line cannot be appended to a sink file.
    """


def csv_line(*fields: str) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="").writerow(fields)
    return buffer.getvalue()


def append_line(path: Path, line: str) -> None:
    """
    Append one newline-terminated line with a single write call.
    """

    try:
        with path.open("a", encoding="utf-8", newline="") as handle:
            handle.write(f"{line}\n")
            handle.flush()
    except OSError as exc:
        raise SinkWriteError(f"Failed to append to {path}: {exc}") from exc


def discard_partial_last_line(path: Path) -> int:
    """
    Cut an unterminated last line left behind by an abrupt stop.

    Returns the number of bytes removed.
    """

    if not path.is_file():
        return 0
    with path.open("r+b") as handle:
        size = handle.seek(0, io.SEEK_END)
        keep = 0
        end = size
        while end > 0:
            start = max(0, end - _TAIL_CHUNK_BYTES)
            handle.seek(start)
            chunk = handle.read(end - start)
            if end == size and chunk.endswith(b"\n"):
                return 0
            index = chunk.rfind(b"\n")
            if index >= 0:
                keep = start + index + 1
                break
            end = start
        handle.truncate(keep)
    return size - keep


def load_completed_domains(path: str | Path) -> frozenset[str]:
    """
    Read the success log and return the exact set of finished domains.

    A last line without a terminating newline was cut short by an abrupt
    stop and is not counted as finished, whatever bytes it holds. Rows
    without a category are skipped as well.
    """

    success_path = Path(path)
    if not success_path.is_file():
        return frozenset()

    complete_lines, _, _partial = success_path.read_bytes().rpartition(b"\n")
    text = complete_lines.decode("utf-8", errors="replace")

    completed: set[str] = set()
    for row in csv.reader(io.StringIO(text, newline="")):
        if len(row) < 2 or not row[1].strip():
            continue
        domain = normalize_domain(row[0])
        if domain:
            completed.add(domain)
    return frozenset(completed)


class AppendOnlySink(Generic[T]):
    """
    One bounded channel plus one consumer thread appending to one file.
    """

    def __init__(
        self,
        *,
        name: str,
        path: str | Path,
        format_line: Callable[[T], str],
        capacity: int = 32,
    ) -> None:
        self.name = name
        self.path = Path(path)
        self._format_line = format_line
        self._queue: queue.Queue[Any] = queue.Queue(maxsize=max(1, capacity))
        self._thread: threading.Thread | None = None
        self._written = 0
        self._write_errors = 0

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError(f"Sink '{self.name}' already started.")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        discarded = discard_partial_last_line(self.path)
        if discarded:
            log_event(
                logger,
                logging.WARNING,
                "sink_partial_line_discarded",
                sink=self.name,
                path=str(self.path),
                discarded_bytes=discarded,
            )
        self._thread = threading.Thread(
            target=self._consume,
            name=f"sink-{self.name}",
            daemon=True,
        )
        self._thread.start()

    def put(self, item: T) -> None:
        """
        Enqueue one item, blocking while the channel is full.
        """

        if self._thread is None:
            raise RuntimeError(f"Sink '{self.name}' is not running.")
        self._queue.put(item)

    def close(self) -> SinkStats:
        """
        Stop accepting items, wait for the consumer to flush, return counters.
        """

        if self._thread is not None:
            self._queue.put(_STOP)
            self._thread.join()
            self._thread = None
        return self.stats()

    def stats(self) -> SinkStats:
        return SinkStats(name=self.name, written=self._written, write_errors=self._write_errors)

    def _consume(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                append_line(self.path, self._format_line(item))
                self._written += 1
            except SinkWriteError as exc:
                self._write_errors += 1
                log_event(
                    logger,
                    logging.ERROR,
                    "sink_write_failed",
                    sink=self.name,
                    path=str(self.path),
                    error=str(exc),
                )
            except Exception as exc:
                self._write_errors += 1
                log_event(
                    logger,
                    logging.ERROR,
                    "sink_format_failed",
                    sink=self.name,
                    error=exc,
                )
            finally:
                self._queue.task_done()


class ResultSink:
    """
    Success, failure and needs-review sinks driven as one unit.

    Use as a context manager: consumers start on enter and are drained
    on exit.
    """

    def __init__(
        self,
        *,
        success_path: str | Path,
        failure_path: str | Path,
        review_path: str | Path,
        capacity: int = 32,
    ) -> None:
        self.success = AppendOnlySink[DomainRecord](
            name="success",
            path=success_path,
            format_line=lambda record: csv_line(record.domain, record.category),
            capacity=capacity,
        )
        self.failure = AppendOnlySink[str](
            name="failure",
            path=failure_path,
            format_line=lambda domain: domain,
            capacity=capacity,
        )
        self.review = AppendOnlySink[ReviewRecord](
            name="review",
            path=review_path,
            format_line=lambda record: csv_line(
                record.domain,
                record.reason,
                " ".join(record.response.split()),
            ),
            capacity=capacity,
        )
        self._closed_stats: list[SinkStats] | None = None

    def __enter__(self) -> "ResultSink":
        self.start()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def start(self) -> None:
        for sink in self._sinks():
            sink.start()

    def close(self) -> list[SinkStats]:
        if self._closed_stats is None:
            self._closed_stats = [sink.close() for sink in self._sinks()]
        return self._closed_stats

    def report_success(self, record: DomainRecord) -> None:
        self.success.put(record)

    def report_failure(self, domain: str) -> None:
        self.failure.put(domain)

    def report_review(self, record: ReviewRecord) -> None:
        self.review.put(record)

    def stats(self) -> dict[str, SinkStats]:
        return {sink.name: sink.stats() for sink in self._sinks()}

    def _sinks(self) -> tuple[AppendOnlySink[Any], ...]:
        return (self.success, self.failure, self.review)
