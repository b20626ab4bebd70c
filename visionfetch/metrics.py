"""Thread-safe request counters shared by the HTTP service."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class MetricsSnapshot:
    total_requests: int
    successful_requests: int
    failed_requests: int
    active_requests: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


class RequestMetrics:
    """Request counters guarded by a single lock.

    One instance is created per service and injected where it is needed.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total = 0
        self._successful = 0
        self._failed = 0
        self._active = 0

    @contextmanager
    def track(self) -> Iterator[None]:
        """Count a request as total and active for the duration of the block."""
        with self._lock:
            self._total += 1
            self._active += 1
        try:
            yield
        finally:
            with self._lock:
                self._active -= 1

    def record_success(self) -> None:
        with self._lock:
            self._successful += 1

    def record_failure(self) -> None:
        with self._lock:
            self._failed += 1

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            return MetricsSnapshot(
                total_requests=self._total,
                successful_requests=self._successful,
                failed_requests=self._failed,
                active_requests=self._active,
            )
