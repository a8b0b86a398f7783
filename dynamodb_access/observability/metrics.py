"""
Operation metrics.

Every repository call ends with exactly one ``record`` per key it touched:

    record(ctx, operation, key, duration_seconds, success)

``Metrics`` fans a record out to every registered sink. Sinks can be added at
any time; registration is serialized by a lock, and recording iterates over a
snapshot so a slow sink never blocks registration. A sink raising an error is
logged and skipped.

``record_operation`` wraps an operation body, measures its wall-clock time and
records on every exit path, including exceptions.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

from ..core.context import Context
from ..models import Key

logger = logging.getLogger(__name__)

OP_COMMIT = "commit"
OP_UPDATE = "update"
OP_READ = "read"
OP_DELETE = "delete"

STATUS_SUCCESS = "success"
STATUS_FAILURE = "failure"


def status_label(success: bool) -> str:
    return STATUS_SUCCESS if success else STATUS_FAILURE


class MetricsInterface(ABC):
    """Metrics publisher."""

    @abstractmethod
    def record(self, ctx: Optional[Context], operation: str, key: Key, duration: float, success: bool) -> None:
        """Publish one operation outcome.

        Args:
            ctx: Execution context of the call, source of custom labels
            operation: One of OP_READ, OP_COMMIT, OP_UPDATE, OP_DELETE
            key: Key the operation addressed
            duration: Wall-clock duration in seconds
            success: False when the operation failed or its condition was rejected
        """


class Metrics(MetricsInterface):
    """Aggregator forwarding records to zero or more sinks."""

    def __init__(self):
        self._sinks: List[MetricsInterface] = []
        self._lock = threading.Lock()

    def add(self, sink: MetricsInterface) -> None:
        with self._lock:
            self._sinks.append(sink)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sinks)

    def record(self, ctx: Optional[Context], operation: str, key: Key, duration: float, success: bool) -> None:
        with self._lock:
            sinks = list(self._sinks)
        for sink in sinks:
            try:
                sink.record(ctx, operation, key, duration, success)
            except Exception as e:
                # a failing sink must not change the outcome of the operation
                logger.warning(f"Failed to record {operation} metric for table '{key.table_name}': {e}")

    def record_multiple(
        self,
        ctx: Optional[Context],
        operation: str,
        keys: Sequence[Key],
        duration: float,
        success: bool
    ) -> None:
        for key in keys:
            self.record(ctx, operation, key, duration, success)


class OperationOutcome:
    """Mutable success flag handed to the body of ``record_operation``.

    Bodies set ``success = False`` for outcomes that return normally but must
    count as failures, such as a rejected write condition.
    """

    def __init__(self):
        self.success = True


@contextmanager
def record_operation(
    metrics: Metrics,
    ctx: Optional[Context],
    operation: str,
    keys: Sequence[Key]
) -> Iterator[OperationOutcome]:
    """Record one metric per key when the wrapped block exits."""
    outcome = OperationOutcome()
    start = time.perf_counter()
    try:
        yield outcome
    except BaseException:
        outcome.success = False
        raise
    finally:
        metrics.record_multiple(ctx, operation, keys, time.perf_counter() - start, outcome.success)
