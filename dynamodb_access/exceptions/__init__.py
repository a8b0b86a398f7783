# Base exception class
from .base import RepositoryError

# Domain-specific exceptions
from .domain_exceptions import (
    CONDITIONAL_CHECK_FAILED,
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
    error_code,
    is_conditional_check_failed,
)

__all__ = [
    # Base exception
    "RepositoryError",

    # Domain exceptions (alphabetically ordered)
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

    # Helpers
    "CONDITIONAL_CHECK_FAILED",
    "error_code",
    "is_conditional_check_failed",
]
