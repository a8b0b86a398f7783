from ..exceptions import InvalidHashKeyNameError, InvalidHashKeyValueError, InvalidTableNameError
from ..models import Key


def validate_key(key: Key) -> None:
    """Check that a key is complete enough to address an item.

    Raises:
        InvalidTableNameError: If the table name is empty
        InvalidHashKeyNameError: If the hash key name is empty
        InvalidHashKeyValueError: If the hash key value is None
    """
    validate_table_name(key)
    if not key.hash_key_name:
        raise InvalidHashKeyNameError()
    if key.hash_key is None:
        raise InvalidHashKeyValueError()


def validate_table_name(key: Key) -> None:
    """Check only the table name; scans need no hash key."""
    if not key.table_name:
        raise InvalidTableNameError()
