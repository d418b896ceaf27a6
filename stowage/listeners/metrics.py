"""
Storage metrics collector — per-operation counters and latency samples.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from ..events import (
    OperationFailedEvent,
    OperationSuccessEvent,
    StorageEvent,
    StorageEventEmitter,
    StorageOperation,
)


@dataclass
class OperationStats:
    """Aggregate statistics for one operation kind."""

    count: int = 0
    failures: int = 0

    # Latency tracking (in milliseconds)
    _latencies: List[float] = field(default_factory=list, repr=False)
    _max_latency_samples: int = field(default=1000, repr=False)

    @property
    def successes(self) -> int:
        return self.count - self.failures

    @property
    def success_rate(self) -> float:
        """Success rate as a percentage."""
        if self.count == 0:
            return 0.0
        return (self.successes / self.count) * 100.0

    @property
    def avg_latency_ms(self) -> float:
        if not self._latencies:
            return 0.0
        return sum(self._latencies) / len(self._latencies)

    @property
    def p99_latency_ms(self) -> float:
        if not self._latencies:
            return 0.0
        sorted_lat = sorted(self._latencies)
        idx = int(len(sorted_lat) * 0.99)
        return sorted_lat[min(idx, len(sorted_lat) - 1)]

    def record(self, latency_ms: float, failed: bool) -> None:
        self.count += 1
        if failed:
            self.failures += 1
        self._latencies.append(latency_ms)
        if len(self._latencies) > self._max_latency_samples:
            self._latencies.pop(0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "failures": self.failures,
            "success_rate": round(self.success_rate, 2),
            "avg_latency_ms": round(self.avg_latency_ms, 3),
            "p99_latency_ms": round(self.p99_latency_ms, 3),
        }


class StorageMetricsCollector:
    """
    Collects operation metrics from an event emitter.

    Subscribes on construction to the success and failed events of all
    six operations. Call ``close()`` to unsubscribe.
    """

    def __init__(self, emitter: StorageEventEmitter):
        self.emitter = emitter
        self._lock = threading.Lock()
        self._stats: Dict[StorageOperation, OperationStats] = {op: OperationStats() for op in StorageOperation}
        self.bytes_uploaded = 0
        self._unsubscribers: List[Callable[[], None]] = []
        for op in StorageOperation:
            _, succeeded, failed = StorageEvent.for_operation(op)
            self._unsubscribers.append(emitter.subscribe(succeeded, self._on_success))
            self._unsubscribers.append(emitter.subscribe(failed, self._on_failure))

    def _on_success(self, event: OperationSuccessEvent) -> None:
        with self._lock:
            self._stats[event.operation].record(event.duration, failed=False)
            if event.operation is StorageOperation.UPLOAD and event.file is not None:
                self.bytes_uploaded += event.file.size or 0

    def _on_failure(self, event: OperationFailedEvent) -> None:
        with self._lock:
            self._stats[event.operation].record(event.duration, failed=True)

    def stats(self, operation: StorageOperation) -> OperationStats:
        return self._stats[StorageOperation(operation)]

    def snapshot(self) -> Dict[str, Any]:
        """Plain-dict view of every counter."""
        with self._lock:
            return {
                "operations": {op.value: stats.to_dict() for op, stats in self._stats.items()},
                "bytes_uploaded": self.bytes_uploaded,
            }

    def reset(self) -> None:
        with self._lock:
            self._stats = {op: OperationStats() for op in StorageOperation}
            self.bytes_uploaded = 0

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
