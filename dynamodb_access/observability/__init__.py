"""
Observability for repository operations:

- Metrics aggregator with Prometheus and CloudWatch sinks
- Pluggable structured logger (no-op by default)
"""

from .cloudwatch import CloudWatchMetrics
from .logger import DEFAULT_LOGGER_NAME, LogInterface, NopLog, StdLog, new_nop_log
from .metrics import (
    OP_COMMIT,
    OP_DELETE,
    OP_READ,
    OP_UPDATE,
    STATUS_FAILURE,
    STATUS_SUCCESS,
    Metrics,
    MetricsInterface,
    OperationOutcome,
    record_operation,
)
from .prometheus import PrometheusMetrics

__all__ = [
    # Metrics
    "Metrics",
    "MetricsInterface",
    "OperationOutcome",
    "record_operation",
    "PrometheusMetrics",
    "CloudWatchMetrics",
    "OP_COMMIT",
    "OP_DELETE",
    "OP_READ",
    "OP_UPDATE",
    "STATUS_FAILURE",
    "STATUS_SUCCESS",

    # Logging
    "DEFAULT_LOGGER_NAME",
    "LogInterface",
    "NopLog",
    "StdLog",
    "new_nop_log",
]
