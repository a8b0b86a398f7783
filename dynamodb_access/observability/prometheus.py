"""
Prometheus metrics sink.

For every operation kind one counter and one histogram are registered on
first use:

    <namespace>_<operation>_total              counter
    <namespace>_<operation>_duration_seconds   histogram

Labels are ``status`` (success/failure), ``table`` (lower-cased table name)
and every custom label name the sink was created with. Custom labels are
read from the execution context; a name the context does not carry is
exported as an empty string so the label set stays fixed.
"""

import re
import threading
from typing import Dict, Optional, Sequence, Tuple

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

from ..core.context import Context, labels_from_context
from ..models import Key
from .metrics import MetricsInterface, status_label

DEFAULT_NAMESPACE = "dynamodb_access"

DEFAULT_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)

STATUS_LABEL = "status"
TABLE_LABEL = "table"

_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_]")


def metric_name(namespace: str, operation: str) -> str:
    """Build a valid metric name prefix for an operation."""
    return _INVALID_NAME_CHARS.sub("_", f"{namespace}_{operation}".lower())


class PrometheusMetrics(MetricsInterface):
    """MetricsInterface publishing to a prometheus_client registry."""

    def __init__(
        self,
        registry: Optional[CollectorRegistry] = None,
        label_names: Sequence[str] = (),
        namespace: str = DEFAULT_NAMESPACE,
        buckets: Sequence[float] = DEFAULT_BUCKETS
    ):
        """Initialize the sink.

        Args:
            registry: Registry the collectors are registered on (global registry by default)
            label_names: Context label names exported on every metric, e.g. ["source"]
            namespace: Metric name prefix
            buckets: Histogram buckets in seconds
        """
        self.registry = registry if registry is not None else REGISTRY
        self.namespace = namespace
        self.buckets = tuple(buckets)
        self.custom_label_names: Tuple[str, ...] = tuple(label_names)
        self._label_names = (STATUS_LABEL, TABLE_LABEL) + self.custom_label_names
        self._collectors: Dict[str, Tuple[Counter, Histogram]] = {}
        self._lock = threading.Lock()

    def _get_collectors(self, operation: str) -> Tuple[Counter, Histogram]:
        with self._lock:
            collectors = self._collectors.get(operation)
            if collectors is None:
                name = metric_name(self.namespace, operation)
                counter = Counter(
                    f"{name}_total",
                    f"Number of DynamoDB {operation} operations",
                    self._label_names,
                    registry=self.registry,
                )
                histogram = Histogram(
                    f"{name}_duration_seconds",
                    f"Duration of DynamoDB {operation} operations in seconds",
                    self._label_names,
                    buckets=self.buckets,
                    registry=self.registry,
                )
                collectors = (counter, histogram)
                self._collectors[operation] = collectors
            return collectors

    def record(self, ctx: Optional[Context], operation: str, key: Key, duration: float, success: bool) -> None:
        counter, histogram = self._get_collectors(operation)

        context_labels = labels_from_context(ctx)
        labels = {name: context_labels.get(name, "") for name in self.custom_label_names}
        labels[STATUS_LABEL] = status_label(success)
        labels[TABLE_LABEL] = key.table_name.lower()

        counter.labels(**labels).inc()
        histogram.labels(**labels).observe(duration)
