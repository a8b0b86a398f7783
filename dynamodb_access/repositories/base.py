"""
Shared plumbing of Repository and GlobalIndex.

- Lazy creation of the boto3 DynamoDB resource from a DynamoDBConfig
- Logger and metrics wiring (``with_log``, ``with_metrics``,
  ``with_prometheus_metrics``)
- The per-call operation scope: metrics recording on every exit path and an
  error log line for DynamoDB errors reaching the caller
- Key condition and pagination helpers for Query requests
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

import boto3
from boto3.dynamodb.conditions import Key as KeyCondition
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config import DynamoDBConfig
from ..core import Context
from ..exceptions import (
    CONDITIONAL_CHECK_FAILED,
    ConnectionError,
    InvalidSequenceError,
    ItemNotFoundError,
    error_code,
)
from ..models import Key, Operator, Query
from ..observability import (
    LogInterface,
    Metrics,
    MetricsInterface,
    OperationOutcome,
    PrometheusMetrics,
    new_nop_log,
    record_operation,
)
from ..utils import to_attribute_value, to_sequence

logger = logging.getLogger(__name__)

TABLE_NAME_FIELD = "table_name"
ERROR_CODE_FIELD = "error_code"


def create_dynamodb_resource(config: DynamoDBConfig):
    """Create a boto3 DynamoDB service resource.

    Raises:
        ConnectionError: If the session or resource cannot be created
    """
    try:
        session = boto3.Session(
            aws_access_key_id=config.aws_access_key_id,
            aws_secret_access_key=config.aws_secret_access_key,
            aws_session_token=config.aws_session_token,
            region_name=config.region_name
        )

        # Configure connection parameters
        dynamodb_config: Dict[str, Any] = {
            'region_name': config.region_name
        }

        if config.endpoint_url:
            dynamodb_config['endpoint_url'] = config.endpoint_url

        # Retries stay with the caller unless max_attempts says otherwise
        boto_config = Config(
            retries={'max_attempts': config.max_attempts, 'mode': 'standard'},
            max_pool_connections=config.max_pool_connections,
            read_timeout=config.timeout_seconds,
            connect_timeout=config.timeout_seconds
        )
        dynamodb_config['config'] = boto_config

        return session.resource('dynamodb', **dynamodb_config)
    except Exception as e:
        logger.error(f"Failed to create DynamoDB resource: {e}")
        raise ConnectionError(f"Failed to connect to DynamoDB: {e}", e) from e


class ResourceProvider:
    """Holds the DynamoDB resource shared by a repository and its indexes."""

    def __init__(self, dynamodb=None, config: Optional[DynamoDBConfig] = None):
        self.config = config
        self._dynamodb = dynamodb
        self._lock = threading.Lock()

    @property
    def dynamodb(self):
        """Lazy initialization of DynamoDB resource."""
        if self._dynamodb is None:
            with self._lock:
                if self._dynamodb is None:
                    self._dynamodb = create_dynamodb_resource(self.config or DynamoDBConfig.from_env())
        return self._dynamodb

    def table(self, table_name: str):
        """Get a boto3 Table handle.

        Raises:
            ConnectionError: If the handle cannot be created
        """
        try:
            return self.dynamodb.Table(table_name)
        except ConnectionError:
            raise
        except Exception as e:
            logger.error(f"Failed to access table '{table_name}': {e}")
            raise ConnectionError(f"Failed to access table '{table_name}': {e}", e) from e


def ensure_context(ctx: Optional[Context]) -> Context:
    return ctx if ctx is not None else Context.background()


def range_condition(name: str, operator: Operator, value: Any):
    """Build the range part of a key condition.

    Raises:
        InvalidSequenceError: If BETWEEN is not given exactly two bounds
    """
    attribute = KeyCondition(name)
    operator = Operator(operator)
    if operator is Operator.BETWEEN:
        bounds = to_sequence(value)
        if len(bounds) != 2:
            raise InvalidSequenceError(
                "BETWEEN requires exactly two range key values",
                context={'length': len(bounds)}
            )
        return attribute.between(to_attribute_value(bounds[0]), to_attribute_value(bounds[1]))

    value = to_attribute_value(value)
    if operator is Operator.LESS:
        return attribute.lt(value)
    if operator is Operator.LESS_OR_EQUAL:
        return attribute.lte(value)
    if operator is Operator.GREATER:
        return attribute.gt(value)
    if operator is Operator.GREATER_OR_EQUAL:
        return attribute.gte(value)
    if operator is Operator.BEGINS_WITH:
        return attribute.begins_with(value)
    return attribute.eq(value)


def key_condition(key: Key, with_range: bool = False, operator: Operator = Operator.EQUAL):
    """Hash key equality, plus the range comparison when requested and set."""
    condition = KeyCondition(key.hash_key_name).eq(to_attribute_value(key.hash_key))
    if with_range and key.has_range:
        condition = condition & range_condition(key.range_key_name, operator, key.range_key)
    return condition


def query_key_condition(query: Key):
    if isinstance(query, Query):
        return key_condition(query, with_range=True, operator=query.range_operator)
    return key_condition(query, with_range=True)


def query_pages(table, kwargs: Dict[str, Any], limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Run a Query following LastEvaluatedKey until exhausted or ``limit`` items are read."""
    if limit is not None and limit <= 0:
        limit = None

    items: List[Dict[str, Any]] = []
    request = dict(kwargs)
    while True:
        if limit is not None:
            request['Limit'] = limit - len(items)
        response = table.query(**request)
        items.extend(response.get('Items', []))

        last_key = response.get('LastEvaluatedKey')
        if not last_key or (limit is not None and len(items) >= limit):
            break
        request['ExclusiveStartKey'] = last_key

    return items[:limit] if limit is not None else items


def require_items(items: List[Dict[str, Any]], table_name: str, key: Optional[Key] = None) -> List[Dict[str, Any]]:
    """Return the items, or raise ItemNotFoundError for an empty result."""
    if not items:
        raise ItemNotFoundError(table_name, key.to_dynamo_key() if key is not None else None)
    return items


class BaseRepository:
    """Logger, metrics and resource wiring shared by every access object."""

    def __init__(
        self,
        dynamodb=None,
        config: Optional[DynamoDBConfig] = None,
        log: Optional[LogInterface] = None,
        metrics: Optional[Metrics] = None,
        provider: Optional[ResourceProvider] = None
    ):
        """Initialize the repository.

        Args:
            dynamodb: Ready boto3 DynamoDB resource; created lazily from ``config`` when omitted
            config: Connection configuration, read from the environment when omitted
            log: Logger, no-op by default
            metrics: Metrics aggregator; a new empty one by default
            provider: Resource holder to share with another repository
        """
        self.provider = provider or ResourceProvider(dynamodb, config)
        self.log: LogInterface = log or new_nop_log()
        self.metrics: Metrics = metrics if metrics is not None else Metrics()

    @property
    def config(self) -> Optional[DynamoDBConfig]:
        return self.provider.config

    @property
    def dynamodb(self):
        return self.provider.dynamodb

    def table(self, table_name: str):
        return self.provider.table(table_name)

    # =========================================================================
    # Wiring
    # =========================================================================

    def with_log(self, log: LogInterface):
        """Enable logging through the given logger."""
        self.log = log
        return self

    def with_metrics(self, sink: MetricsInterface):
        """Add a metrics sink; every later operation is published to it."""
        self.metrics.add(sink)
        return self

    def with_prometheus_metrics(self, registry=None, label_names: Sequence[str] = ()):
        """Add a Prometheus sink registered on ``registry``.

        Args:
            registry: prometheus_client CollectorRegistry (global registry by default)
            label_names: Context label names to export, e.g. ["source"]
        """
        kwargs: Dict[str, Any] = {}
        if self.config is not None:
            kwargs['namespace'] = self.config.metrics_namespace
        self.metrics.add(PrometheusMetrics(registry, label_names=label_names, **kwargs))
        return self

    # =========================================================================
    # Operation scope
    # =========================================================================

    @contextmanager
    def _operation(self, ctx: Context, operation: str, keys: Sequence[Key], table_name: str) -> Iterator[OperationOutcome]:
        with record_operation(self.metrics, ctx, operation, keys) as outcome:
            try:
                yield outcome
            except (ClientError, BotoCoreError) as e:
                self._log_error(ctx, table_name, e)
                raise

    def _table_for(self, ctx: Context, table_name: str):
        """Table handle for a request about to be sent."""
        ctx.raise_if_cancelled()
        return self.table(table_name)

    def _logger(self, ctx: Context, table_name: str) -> LogInterface:
        return self.log.with_context(ctx).with_field(TABLE_NAME_FIELD, table_name)

    def _log_not_found(self, ctx: Context, table_name: str) -> None:
        self._logger(ctx, table_name).info(ItemNotFoundError.default_message)

    def _log_condition_rejected(self, ctx: Context, table_name: str) -> None:
        self._logger(ctx, table_name).info(CONDITIONAL_CHECK_FAILED)

    def _log_error(self, ctx: Context, table_name: str, error: Exception) -> None:
        # transport errors carry no service code; their class name stands in
        code = error_code(error) or type(error).__name__
        self._logger(ctx, table_name).with_field(ERROR_CODE_FIELD, code).error(str(error))
