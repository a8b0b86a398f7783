from .config import DynamoDBConfig
from .core import (
    # Execution context
    SOURCE_LABEL,
    Context,
    add_metrics_label,
    with_source_label,
)
from .exceptions import (
    ConnectionError,
    InvalidBatchRequestError,
    InvalidHashKeyNameError,
    InvalidHashKeyValueError,
    InvalidModelError,
    InvalidQueryTargetError,
    InvalidSequenceError,
    InvalidTableNameError,
    ItemNotFoundError,
    KeyValidationError,
    OperationCancelledError,
    RepositoryError,
)
from .models import (
    # Keys
    Key,
    Operator,
    Query,
    # Update expressions
    UpdateExpression,
    UpdateExpressions,
    # Optimistic locking
    ModelInterface,
    VersionedModel,
)
from .observability import (
    # Metrics
    CloudWatchMetrics,
    Metrics,
    MetricsInterface,
    PrometheusMetrics,
    # Logging
    LogInterface,
    NopLog,
    StdLog,
)
from .repositories import (
    GlobalIndex,
    Repository,
    ScanIterator,
)

__version__ = "1.0.0"
__all__ = [
    # Configuration
    "DynamoDBConfig",

    # Repository
    "Repository",
    "GlobalIndex",
    "ScanIterator",

    # Keys and expressions
    "Key",
    "Query",
    "Operator",
    "UpdateExpression",
    "UpdateExpressions",

    # Optimistic locking
    "ModelInterface",
    "VersionedModel",

    # Execution context
    "Context",
    "SOURCE_LABEL",
    "add_metrics_label",
    "with_source_label",

    # Observability
    "CloudWatchMetrics",
    "LogInterface",
    "Metrics",
    "MetricsInterface",
    "NopLog",
    "PrometheusMetrics",
    "StdLog",

    # Exceptions
    "RepositoryError",
    "ConnectionError",
    "InvalidBatchRequestError",
    "InvalidHashKeyNameError",
    "InvalidHashKeyValueError",
    "InvalidModelError",
    "InvalidQueryTargetError",
    "InvalidSequenceError",
    "InvalidTableNameError",
    "ItemNotFoundError",
    "KeyValidationError",
    "OperationCancelledError",
]
