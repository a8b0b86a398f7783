"""
Key and Query value objects.

A Key says where an item lives: table, hash key and optional range key.
A Query extends it with the range comparison, a result limit and the sort
order. Both are frozen; every ``with_*`` builder returns a new instance, so a
key can be shared freely between threads.

Example:
    key = (
        Key()
        .with_table_name("UserTable")
        .with_hash_key_name("UUID")
        .with_hash_key("uuid")
    )

    query = (
        Query()
        .with_table_name("Profiles")
        .with_hash_key_name("UUID")
        .with_hash_key("uuid")
        .with_range_key_name("CreatedAt")
        .with_range_key("2024-01-01")
        .with_range_op(Operator.GREATER_OR_EQUAL)
        .with_limit(10)
        .with_descending()
    )
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class Operator(str, Enum):
    """Range key comparison operators."""

    EQUAL = "EQ"
    LESS = "LT"
    LESS_OR_EQUAL = "LE"
    GREATER = "GT"
    GREATER_OR_EQUAL = "GE"
    BEGINS_WITH = "BEGINS_WITH"
    BETWEEN = "BETWEEN"


class Key(BaseModel):
    """Identity of a single item."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    table_name: str = ""
    hash_key_name: str = ""
    hash_key: Any = None
    range_key_name: Optional[str] = None
    range_key: Any = None

    def with_table_name(self, table_name: str):
        return self.model_copy(update={'table_name': table_name})

    def with_hash_key_name(self, hash_key_name: str):
        return self.model_copy(update={'hash_key_name': hash_key_name})

    def with_hash_key(self, hash_key: Any):
        return self.model_copy(update={'hash_key': hash_key})

    def with_range_key_name(self, range_key_name: str):
        return self.model_copy(update={'range_key_name': range_key_name})

    def with_range_key(self, range_key: Any):
        return self.model_copy(update={'range_key': range_key})

    @property
    def has_range(self) -> bool:
        """True when both the range key name and value are set."""
        return bool(self.range_key_name) and self.range_key is not None

    def to_dynamo_key(self) -> Dict[str, Any]:
        """Build the key dictionary used by GetItem/DeleteItem/UpdateItem."""
        key = {self.hash_key_name: self.hash_key}
        if self.has_range:
            key[self.range_key_name] = self.range_key
        return key

    def key_names(self) -> list:
        """Attribute names identifying an item, used to de-duplicate batches."""
        names = [self.hash_key_name]
        if self.range_key_name:
            names.append(self.range_key_name)
        return names


class Query(Key):
    """Key plus range semantics for multi-item retrieval.

    ``range_operator`` only matters when a range key name and value are set.
    For ``Operator.BETWEEN`` the range key value is a pair ``(low, high)``.
    """

    range_operator: Operator = Operator.EQUAL
    limit: Optional[int] = None
    descending: bool = False

    def with_range_op(self, operator: Operator):
        return self.model_copy(update={'range_operator': Operator(operator)})

    def with_limit(self, limit: int):
        return self.model_copy(update={'limit': limit})

    def with_descending(self, descending: bool = True):
        return self.model_copy(update={'descending': descending})
