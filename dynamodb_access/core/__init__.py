"""
Core building blocks used by the repository and the global index:

- Key validation run before any request is issued
- Expression compiler for update, condition and template expressions
- Request-scoped execution context carrying log fields and metric labels
"""

from .context import (
    SOURCE_LABEL,
    Context,
    add_metrics_label,
    labels_from_context,
    with_source_label,
)
from .expressions import ExpressionBuilder
from .validation import validate_key, validate_table_name

__all__ = [
    "Context",
    "ExpressionBuilder",
    "SOURCE_LABEL",
    "add_metrics_label",
    "labels_from_context",
    "validate_key",
    "validate_table_name",
    "with_source_label",
]
