from .expressions import UpdateExpression, UpdateExpressions
from .key import Key, Operator, Query
from .model import (
    CREATED_AT_ATTRIBUTE,
    UPDATED_AT_ATTRIBUTE,
    VERSION_ATTRIBUTE,
    ModelInterface,
    VersionedModel,
)

__all__ = [
    # Key model
    "Key",
    "Operator",
    "Query",

    # Update expressions
    "UpdateExpression",
    "UpdateExpressions",

    # Optimistic locking capability
    "ModelInterface",
    "VersionedModel",
    "VERSION_ATTRIBUTE",
    "CREATED_AT_ATTRIBUTE",
    "UPDATED_AT_ATTRIBUTE",
]
