"""
Read access through a global secondary index.

Obtained from ``Repository.gindex(name)``. Keys name the index's own hash and
range attributes; every request carries ``IndexName``. Global secondary
indexes are read-only, so only read operations exist here.
"""

from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel

from ..core import Context, validate_key
from ..exceptions import InvalidQueryTargetError, ItemNotFoundError
from ..models import Key, Query
from ..observability import OP_READ, LogInterface, Metrics
from ..utils import assign_item, item_to_model
from .base import (
    BaseRepository,
    ResourceProvider,
    ensure_context,
    key_condition,
    query_key_condition,
    query_pages,
    require_items,
)


class GlobalIndex(BaseRepository):
    """Queries against one global secondary index."""

    def __init__(
        self,
        name: str,
        dynamodb=None,
        log: Optional[LogInterface] = None,
        metrics: Optional[Metrics] = None,
        provider: Optional[ResourceProvider] = None
    ):
        super().__init__(dynamodb=dynamodb, log=log, metrics=metrics, provider=provider)
        self.name = name

    def get_item(self, key: Key, item: Any, ctx: Optional[Context] = None) -> bool:
        """Fill ``item`` with the first index entry matching hash (and range) key.

        Returns:
            True if an item was found, False otherwise
        """
        ctx = ensure_context(ctx)
        with self._operation(ctx, OP_READ, [key], key.table_name):
            validate_key(key)
            found = self._read(ctx, key, key_condition(key, with_range=True), limit=1)
            if not found:
                return False
            assign_item(item, found[0])
            return True

    def get_items(
        self,
        key: Key,
        items: List[Any],
        ctx: Optional[Context] = None,
        model: Optional[Type[BaseModel]] = None
    ) -> bool:
        """Fetch every index entry with the hash key; the range key is ignored."""
        ctx = ensure_context(ctx)
        with self._operation(ctx, OP_READ, [key], key.table_name):
            validate_key(key)
            return self._fill(items, self._read(ctx, key, key_condition(key)), model)

    def get_items_with_range(
        self,
        key: Key,
        items: List[Any],
        ctx: Optional[Context] = None,
        model: Optional[Type[BaseModel]] = None
    ) -> bool:
        """Fetch every index entry matching the hash key and, when set, the range key."""
        ctx = ensure_context(ctx)
        with self._operation(ctx, OP_READ, [key], key.table_name):
            validate_key(key)
            return self._fill(items, self._read(ctx, key, key_condition(key, with_range=True)), model)

    def query(
        self,
        query: Query,
        items: List[Any],
        ctx: Optional[Context] = None,
        model: Optional[Type[BaseModel]] = None
    ) -> None:
        """Query the index; same semantics as ``Repository.query``.

        Raises:
            InvalidQueryTargetError: If ``items`` is not a list
        """
        ctx = ensure_context(ctx)
        with self._operation(ctx, OP_READ, [query], query.table_name):
            if not isinstance(items, list):
                raise InvalidQueryTargetError(context={'type': type(items).__name__})
            validate_key(query)

            kwargs: Dict[str, Any] = {
                'IndexName': self.name,
                'KeyConditionExpression': query_key_condition(query),
            }
            if getattr(query, 'descending', False):
                kwargs['ScanIndexForward'] = False

            table = self._table_for(ctx, query.table_name)
            items[:] = [
                item_to_model(found_item, model)
                for found_item in query_pages(table, kwargs, getattr(query, 'limit', None))
            ]

    def _read(self, ctx: Context, key: Key, condition, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Index query; an empty result is logged and returned as []."""
        table = self._table_for(ctx, key.table_name)
        kwargs = {'IndexName': self.name, 'KeyConditionExpression': condition}
        try:
            return require_items(query_pages(table, kwargs, limit), key.table_name, key)
        except ItemNotFoundError:
            self._log_not_found(ctx, key.table_name)
            return []

    @staticmethod
    def _fill(items: List[Any], found: List[Dict[str, Any]], model: Optional[Type[BaseModel]]) -> bool:
        if not found:
            return False
        items[:] = [item_to_model(found_item, model) for found_item in found]
        return True
