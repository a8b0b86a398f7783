"""
Paginated table scan.

``ScanIterator`` reads one page of ``page_size`` items at a time and only
requests the next page once the current one is consumed. A failed page
request ends the iteration, transport failures such as timeouts included; the
error is kept in ``error`` for the caller to inspect.

Example:
    iterator = repository.scan_iterator(key, 100)
    user = {}
    while iterator.next_item(user):
        handle(user)
    if iterator.error is not None:
        raise iterator.error

Not safe for concurrent use.
"""

from typing import Any, Dict, List, Optional, Type

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel

from ..core import Context
from ..exceptions import OperationCancelledError
from ..utils import assign_item, item_to_model


class ScanIterator:
    """Lazy iterator over every item of a table."""

    def __init__(self, table, page_size: int, ctx: Context, model: Optional[Type[BaseModel]] = None):
        self.table = table
        self.page_size = page_size
        self.ctx = ctx
        self.model = model
        self.error: Optional[Exception] = None
        self._page: List[Dict[str, Any]] = []
        self._position = 0
        self._last_key: Optional[Dict[str, Any]] = None
        self._exhausted = False

    @property
    def exhausted(self) -> bool:
        return self._exhausted and self._position >= len(self._page)

    def next_item(self, item: Any) -> bool:
        """Fill ``item`` (dict or pydantic model instance) with the next scanned item.

        Returns:
            False once the scan is over or failed
        """
        found = self._next()
        if found is None:
            return False
        assign_item(item, found)
        return True

    def __iter__(self):
        return self

    def __next__(self):
        found = self._next()
        if found is None:
            raise StopIteration
        return item_to_model(found, self.model)

    def _next(self) -> Optional[Dict[str, Any]]:
        if self._position >= len(self._page) and not self._fetch_page():
            return None
        found = self._page[self._position]
        self._position += 1
        return found

    def _fetch_page(self) -> bool:
        # pages can come back empty while the scan still has a cursor
        while not self._exhausted:
            scan_kwargs: Dict[str, Any] = {}
            if self.page_size and self.page_size > 0:
                scan_kwargs['Limit'] = self.page_size
            if self._last_key:
                scan_kwargs['ExclusiveStartKey'] = self._last_key

            try:
                self.ctx.raise_if_cancelled()
                response = self.table.scan(**scan_kwargs)
            except (ClientError, BotoCoreError, OperationCancelledError) as e:
                self.error = e
                self._exhausted = True
                self._page, self._position = [], 0
                return False

            self._page = response.get('Items', [])
            self._position = 0
            self._last_key = response.get('LastEvaluatedKey')
            if not self._last_key:
                self._exhausted = True
            if self._page:
                return True
        return False
