"""
DynamoDB Repository

Single entry point for the primary table operations:

- Reads: get_item, get_items, query, batch_get_items, scan_iterator
- Writes: save_item, save_items, delete_item, delete_items
- Updates: update, update_with_update_expressions (+ return value and
  conditional variants), conditional_update, optimistic_lock_save

Every operation:
1. Opens a metrics scope recording once per key on exit
2. Validates the key(s) before any request is issued
3. Checks the context for cancellation
4. Translates "no item" and "condition rejected" into a False result;
   any other DynamoDB error reaches the caller as a botocore ClientError

Example:
    repository = Repository.from_config(DynamoDBConfig.from_env())
    key = Key().with_table_name("UserTable").with_hash_key_name("UUID").with_hash_key("uuid")

    user = User(UUID="uuid", UserName="name")
    repository.save_item(key, user)

    found = User.model_construct()
    if repository.get_item(key, found):
        ...
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Type

from botocore.exceptions import ClientError
from pydantic import BaseModel

from ..config import DynamoDBConfig
from ..core import Context, ExpressionBuilder, validate_key, validate_table_name
from ..exceptions import (
    InvalidBatchRequestError,
    InvalidModelError,
    InvalidQueryTargetError,
    ItemNotFoundError,
    is_conditional_check_failed,
)
from ..models import VERSION_ATTRIBUTE, Key, ModelInterface, Query, UpdateExpression, UpdateExpressions
from ..observability import OP_COMMIT, OP_DELETE, OP_READ, OP_UPDATE, OperationOutcome, StdLog
from ..utils import assign_item, item_to_model, model_to_item, to_attribute_value, to_sequence
from .base import BaseRepository, ensure_context, key_condition, query_key_condition, query_pages, require_items
from .global_index import GlobalIndex
from .iterator import ScanIterator

# DynamoDB BatchGetItem accepts at most 100 keys per request
BATCH_GET_LIMIT = 100

OPTIMISTIC_LOCK_CONDITION = "attribute_not_exists($) OR $ = ?"


class Repository(BaseRepository):
    """Repository over the primary key of DynamoDB tables."""

    @classmethod
    def from_config(cls, config: DynamoDBConfig) -> 'Repository':
        """Create a repository from configuration.

        The DynamoDB resource is created on first use. When
        ``config.enable_operation_logging`` is set, operations log through the
        standard logger named ``config.logger_name``.
        """
        repository = cls(config=config)
        if config.enable_operation_logging:
            repository.with_log(StdLog(logging.getLogger(config.logger_name)))
        return repository

    def gindex(self, name: str) -> GlobalIndex:
        """Access a global secondary index sharing this repository's resource, log and metrics."""
        return GlobalIndex(name, log=self.log, metrics=self.metrics, provider=self.provider)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_item(self, key: Key, item: Any, ctx: Optional[Context] = None) -> bool:
        """Fetch one item by hash (and range) key into ``item``.

        Args:
            key: Item key
            item: dict or pydantic model instance filled in place
            ctx: Execution context

        Returns:
            True if the item was found, False otherwise
        """
        ctx = ensure_context(ctx)
        with self._operation(ctx, OP_READ, [key], key.table_name):
            validate_key(key)
            table = self._table_for(ctx, key.table_name)
            response = table.get_item(Key=to_attribute_value(key.to_dynamo_key()))
            found = response.get('Item')
            if found is None:
                self._log_not_found(ctx, key.table_name)
                return False
            assign_item(item, found)
            return True

    def get_items(
        self,
        key: Key,
        items: List[Any],
        ctx: Optional[Context] = None,
        model: Optional[Type[BaseModel]] = None
    ) -> bool:
        """Fetch every item sharing the hash key; the range key is ignored.

        Returns:
            True if at least one item was found
        """
        ctx = ensure_context(ctx)
        with self._operation(ctx, OP_READ, [key], key.table_name):
            validate_key(key)
            table = self._table_for(ctx, key.table_name)
            try:
                found = require_items(
                    query_pages(table, {'KeyConditionExpression': key_condition(key)}),
                    key.table_name,
                    key
                )
            except ItemNotFoundError:
                self._log_not_found(ctx, key.table_name)
                return False
            items[:] = [item_to_model(found_item, model) for found_item in found]
            return True

    def query(
        self,
        query: Query,
        items: List[Any],
        ctx: Optional[Context] = None,
        model: Optional[Type[BaseModel]] = None
    ) -> None:
        """Query by hash key and optional range condition.

        ``items`` is replaced with the results, an empty list when nothing
        matches.

        Raises:
            InvalidQueryTargetError: If ``items`` is not a list
            KeyValidationError: If the query key is incomplete
            ClientError: On DynamoDB errors
        """
        ctx = ensure_context(ctx)
        with self._operation(ctx, OP_READ, [query], query.table_name):
            if not isinstance(items, list):
                raise InvalidQueryTargetError(context={'type': type(items).__name__})
            validate_key(query)
            table = self._table_for(ctx, query.table_name)
            items[:] = [
                item_to_model(found_item, model)
                for found_item in query_pages(table, _query_kwargs(query), getattr(query, 'limit', None))
            ]

    def batch_get_items(
        self,
        keys: Sequence[Key],
        items: List[Any],
        ctx: Optional[Context] = None,
        model: Optional[Type[BaseModel]] = None
    ) -> bool:
        """Fetch many items of one table in a single logical BatchGetItem.

        Returns:
            False for an empty key list or when no item was found

        Raises:
            InvalidBatchRequestError: If the keys reference more than one table
        """
        keys = list(keys)
        if not keys:
            return False

        ctx = ensure_context(ctx)
        table_name = keys[0].table_name
        with self._operation(ctx, OP_READ, keys, table_name):
            for key in keys:
                validate_key(key)
            table_names = {key.table_name for key in keys}
            if len(table_names) > 1:
                raise InvalidBatchRequestError(context={'tables': sorted(table_names)})

            ctx.raise_if_cancelled()
            try:
                found = require_items(self._batch_get(table_name, keys), table_name)
            except ItemNotFoundError:
                self._log_not_found(ctx, table_name)
                return False
            items[:] = [item_to_model(found_item, model) for found_item in found]
            return True

    def _batch_get(self, table_name: str, keys: List[Key]) -> List[Dict[str, Any]]:
        dynamo_keys = _unique_keys(keys)
        items: List[Dict[str, Any]] = []
        for start in range(0, len(dynamo_keys), BATCH_GET_LIMIT):
            request = {table_name: {'Keys': dynamo_keys[start:start + BATCH_GET_LIMIT]}}
            while request:
                response = self.dynamodb.batch_get_item(RequestItems=request)
                items.extend(response.get('Responses', {}).get(table_name, []))
                request = response.get('UnprocessedKeys') or {}
        return items

    def scan_iterator(
        self,
        key: Key,
        page_size: int,
        ctx: Optional[Context] = None,
        model: Optional[Type[BaseModel]] = None
    ) -> ScanIterator:
        """Create a lazy iterator over a full table scan.

        Only the table name is validated; no request is sent until the first
        item is read.
        """
        ctx = ensure_context(ctx)
        with self._operation(ctx, OP_READ, [key], key.table_name):
            validate_table_name(key)
            return ScanIterator(self.table(key.table_name), page_size, ctx, model=model)

    # =========================================================================
    # Writes
    # =========================================================================

    def save_item(self, key: Key, item: Any, ctx: Optional[Context] = None) -> None:
        """Unconditionally put a full item."""
        ctx = ensure_context(ctx)
        with self._operation(ctx, OP_COMMIT, [key], key.table_name):
            validate_key(key)
            self._table_for(ctx, key.table_name).put_item(Item=model_to_item(item))

    def save_items(self, key: Key, items: Sequence[Any], ctx: Optional[Context] = None) -> None:
        """Put many items of one table through a batch writer.

        Items with the same key are de-duplicated, the last one wins.

        Raises:
            InvalidSequenceError: If ``items`` is not a list or tuple
        """
        ctx = ensure_context(ctx)
        with self._operation(ctx, OP_COMMIT, [key], key.table_name):
            validate_key(key)
            records = to_sequence(items)
            table = self._table_for(ctx, key.table_name)
            with table.batch_writer(overwrite_by_pkeys=key.key_names()) as batch:
                for record in records:
                    batch.put_item(Item=model_to_item(record))

    def delete_item(self, key: Key, ctx: Optional[Context] = None) -> None:
        ctx = ensure_context(ctx)
        with self._operation(ctx, OP_DELETE, [key], key.table_name):
            validate_key(key)
            self._table_for(ctx, key.table_name).delete_item(Key=to_attribute_value(key.to_dynamo_key()))

    def delete_items(self, keys: Sequence[Key], ctx: Optional[Context] = None) -> None:
        """Delete many items in one batch; one metric is recorded per key."""
        keys = list(keys)
        if not keys:
            return

        ctx = ensure_context(ctx)
        with self._operation(ctx, OP_DELETE, keys, keys[0].table_name):
            for key in keys:
                validate_key(key)
            ctx.raise_if_cancelled()
            for table_name, table_keys in _keys_by_table(keys).items():
                table = self.table(table_name)
                with table.batch_writer(overwrite_by_pkeys=table_keys[0].key_names()) as batch:
                    for key in table_keys:
                        batch.delete_item(Key=to_attribute_value(key.to_dynamo_key()))

    # =========================================================================
    # Updates
    # =========================================================================

    def update(
        self,
        expression: UpdateExpression,
        key: Key,
        values: Dict[str, Any],
        ctx: Optional[Context] = None
    ) -> None:
        """Apply one kind of update expression to every attribute in ``values``.

        For ``UpdateExpression.SET_EXPR`` the keys are templates and the
        values the positional arguments:

            repository.update(UpdateExpression.SET_EXPR, key, {"Meta.$ = ?": ["foo", "bar"]})

        Raises:
            InvalidSequenceError: If a SET_EXPR value is not a list or tuple
        """
        ctx = ensure_context(ctx)
        with self._operation(ctx, OP_UPDATE, [key], key.table_name):
            validate_key(key)
            builder = ExpressionBuilder()
            for path, value in values.items():
                builder.apply(expression, path, value)
            self._update_item(ctx, key, builder)

    def update_with_update_expressions(
        self,
        key: Key,
        update_expressions: UpdateExpressions,
        ctx: Optional[Context] = None
    ) -> None:
        """Apply several kinds of update expressions in one UpdateItem."""
        ctx = ensure_context(ctx)
        with self._operation(ctx, OP_UPDATE, [key], key.table_name):
            validate_key(key)
            self._update_item(ctx, key, _build_updates(update_expressions))

    def update_with_update_expressions_and_return_value(
        self,
        key: Key,
        item: Any,
        update_expressions: UpdateExpressions,
        ctx: Optional[Context] = None
    ) -> None:
        """As update_with_update_expressions, filling ``item`` with the updated item."""
        ctx = ensure_context(ctx)
        with self._operation(ctx, OP_UPDATE, [key], key.table_name):
            validate_key(key)
            attributes = self._update_item(ctx, key, _build_updates(update_expressions), return_new=True)
            assign_item(item, attributes or {})

    def conditional_update_with_update_expressions_and_return_value(
        self,
        key: Key,
        item: Any,
        update_expressions: UpdateExpressions,
        condition_expression: str,
        *condition_args: Any,
        ctx: Optional[Context] = None
    ) -> bool:
        """Update only if the condition holds, filling ``item`` with the updated item.

        Args:
            key: Item key
            item: dict or pydantic model instance filled in place
            update_expressions: Update groups by expression kind
            condition_expression: Template using ``$`` for names and ``?`` for values
            *condition_args: Template arguments in order
            ctx: Execution context

        Returns:
            True if updated, False if the condition was not met
        """
        ctx = ensure_context(ctx)
        with self._operation(ctx, OP_UPDATE, [key], key.table_name) as outcome:
            validate_key(key)
            builder = _build_updates(update_expressions)
            condition = builder.compile(condition_expression, condition_args)
            try:
                attributes = self._update_item(ctx, key, builder, condition=condition, return_new=True)
            except ClientError as e:
                if not is_conditional_check_failed(e):
                    raise
                self._reject(ctx, outcome, key.table_name)
                return False
            assign_item(item, attributes or {})
            return True

    def conditional_update(
        self,
        key: Key,
        item: Any,
        expression: str,
        *expression_args: Any,
        ctx: Optional[Context] = None
    ) -> bool:
        """Put the full item only if the condition holds.

        Example:
            repository.conditional_update(key, user, "$ = ?", "UserName", "name")

        Returns:
            True if saved, False if the condition was not met
        """
        ctx = ensure_context(ctx)
        with self._operation(ctx, OP_UPDATE, [key], key.table_name) as outcome:
            validate_key(key)
            return self._conditional_put(ctx, outcome, key, item, expression, expression_args)

    def optimistic_lock_save(self, key: Key, item: Any, ctx: Optional[Context] = None) -> bool:
        """Save a versioned item unless someone else saved a newer version.

        The item's version is increased and its timestamps stamped before the
        put; the put only succeeds if the stored version still equals the
        version read from the item (or the item has no version yet).

        Returns:
            True if saved, False on a version conflict

        Raises:
            InvalidModelError: If the item does not implement ModelInterface
        """
        ctx = ensure_context(ctx)
        with self._operation(ctx, OP_COMMIT, [key], key.table_name) as outcome:
            validate_key(key)
            if not isinstance(item, ModelInterface):
                raise InvalidModelError(context={'type': type(item).__name__})

            current_version = item.get_version()
            item.increase_version()
            item.init_created_at()
            item.init_updated_at()

            return self._conditional_put(
                ctx,
                outcome,
                key,
                item,
                OPTIMISTIC_LOCK_CONDITION,
                (VERSION_ATTRIBUTE, VERSION_ATTRIBUTE, current_version)
            )

    # =========================================================================
    # Request helpers
    # =========================================================================

    def _update_item(
        self,
        ctx: Context,
        key: Key,
        builder: ExpressionBuilder,
        condition: Optional[str] = None,
        return_new: bool = False
    ) -> Optional[Dict[str, Any]]:
        update_kwargs: Dict[str, Any] = {
            'Key': to_attribute_value(key.to_dynamo_key()),
            'UpdateExpression': builder.update_expression(),
        }
        if condition is not None:
            update_kwargs['ConditionExpression'] = condition
        update_kwargs.update(builder.expression_kwargs())
        if return_new:
            update_kwargs['ReturnValues'] = 'ALL_NEW'

        response = self._table_for(ctx, key.table_name).update_item(**update_kwargs)
        return response.get('Attributes')

    def _conditional_put(
        self,
        ctx: Context,
        outcome: OperationOutcome,
        key: Key,
        item: Any,
        expression: str,
        expression_args: Sequence[Any]
    ) -> bool:
        builder = ExpressionBuilder()
        put_kwargs: Dict[str, Any] = {
            'Item': model_to_item(item),
            'ConditionExpression': builder.compile(expression, expression_args),
        }
        put_kwargs.update(builder.expression_kwargs())

        try:
            self._table_for(ctx, key.table_name).put_item(**put_kwargs)
        except ClientError as e:
            if not is_conditional_check_failed(e):
                raise
            self._reject(ctx, outcome, key.table_name)
            return False
        return True

    def _reject(self, ctx: Context, outcome: OperationOutcome, table_name: str) -> None:
        # a rejected write is reported as a failed operation
        outcome.success = False
        self._log_condition_rejected(ctx, table_name)


def _build_updates(update_expressions: UpdateExpressions) -> ExpressionBuilder:
    builder = ExpressionBuilder()
    for expression, values in update_expressions.items():
        for path, value in values.items():
            builder.apply(expression, path, value)
    return builder


def _query_kwargs(query: Key) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {'KeyConditionExpression': query_key_condition(query)}
    if getattr(query, 'descending', False):
        kwargs['ScanIndexForward'] = False
    return kwargs


def _unique_keys(keys: List[Key]) -> List[Dict[str, Any]]:
    """Key dicts in order, without duplicates (BatchGetItem rejects them)."""
    seen = set()
    unique = []
    for key in keys:
        dynamo_key = to_attribute_value(key.to_dynamo_key())
        marker = tuple(sorted((name, repr(value)) for name, value in dynamo_key.items()))
        if marker not in seen:
            seen.add(marker)
            unique.append(dynamo_key)
    return unique


def _keys_by_table(keys: List[Key]) -> Dict[str, List[Key]]:
    """Keys grouped by table name, tables in order of first appearance."""
    grouped: Dict[str, List[Key]] = {}
    for key in keys:
        grouped.setdefault(key.table_name, []).append(key)
    return grouped
