"""
Domain-Specific Exceptions for the DynamoDB access layer

Organized by category:
1. Key Validation Errors (raised before any request is issued)
2. Argument Shape Errors
3. Outcome Signals (not-found, cancelled)
4. Infrastructure Errors

DynamoDB service errors (throttling, permissions, malformed items) are not
wrapped: they reach the caller as ``botocore.exceptions.ClientError``.
"""

from typing import Any, Dict, Optional

from botocore.exceptions import ClientError

from .base import RepositoryError

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"


# =============================================================================
# Key Validation Errors
# =============================================================================

class KeyValidationError(RepositoryError):
    """Raised when a Key or Query is structurally incomplete."""

    default_message = "invalid key"


class InvalidTableNameError(KeyValidationError):
    """Raised when the key has an empty table name."""

    default_message = "invalid table name"


class InvalidHashKeyNameError(KeyValidationError):
    """Raised when the key has an empty hash key name."""

    default_message = "invalid hash key name"


class InvalidHashKeyValueError(KeyValidationError):
    """Raised when the key has no hash key value."""

    default_message = "invalid hash key value"


# =============================================================================
# Argument Shape Errors
# =============================================================================

class InvalidQueryTargetError(RepositoryError):
    """Raised when the destination of a query is not a list to fill."""

    default_message = "query destination must be a list"


class InvalidSequenceError(RepositoryError):
    """Raised when a value that must be a sequence is not one.

    Used for:
    - Batch save inputs
    - SET_EXPR positional arguments
    """

    default_message = "value must be a list or tuple"


class InvalidBatchRequestError(RepositoryError):
    """Raised when the keys of a batch get reference more than one table."""

    default_message = "invalid batch request: all keys must reference the same table"


class InvalidModelError(RepositoryError, TypeError):
    """Raised when an item lacks the version/timestamp capability required
    for optimistic locking."""

    default_message = "items to use with optimistic locking must implement ModelInterface"


# =============================================================================
# Outcome Signals
# =============================================================================

class ItemNotFoundError(RepositoryError):
    """Signal that a read found nothing.

    Read operations translate it into a negative result; it is never raised
    to their callers.
    """

    default_message = "no item found"

    def __init__(self, table_name: str, key: Optional[Dict[str, Any]] = None, original_error: Optional[Exception] = None):
        """Initialize item not found error.

        Args:
            table_name: Name of the DynamoDB table
            key: The key that was not found
            original_error: The original exception that caused this error
        """
        self.table_name = table_name
        self.key = key or {}
        super().__init__(None, original_error, {'table_name': table_name, 'key': self.key})


class OperationCancelledError(RepositoryError):
    """Raised when the execution context was cancelled before the request."""

    default_message = "operation cancelled"


# =============================================================================
# Infrastructure Errors
# =============================================================================

class ConnectionError(RepositoryError):
    """Raised when the DynamoDB resource or a table handle cannot be created.

    Used for:
    - Invalid session credentials or region
    - Invalid endpoint configurations
    """


def error_code(error: BaseException) -> Optional[str]:
    """Return the DynamoDB error code carried by a ClientError, if any."""
    if isinstance(error, ClientError):
        return error.response.get('Error', {}).get('Code')
    return None


def is_conditional_check_failed(error: BaseException) -> bool:
    """Tell whether the error is DynamoDB rejecting a write precondition."""
    return error_code(error) == CONDITIONAL_CHECK_FAILED
