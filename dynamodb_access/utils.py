"""
DynamoDB Access Utilities

Conversion between caller-side items and DynamoDB items:

- Pydantic models are dumped by alias, without None values
- float → Decimal (boto3 refuses floats for the Number type)
- datetime/date → ISO string
- Enum → its value
- tuples → lists, sets stay sets (DynamoDB set types)

Reads go the other way through ``item_to_model`` and ``assign_item``; pydantic
validation turns ISO strings and Decimals back into the field types.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel

from .exceptions import InvalidSequenceError


def to_attribute_value(value: Any) -> Any:
    """Convert a Python value into something boto3 can serialize."""
    if isinstance(value, BaseModel):
        return model_to_item(value)
    if isinstance(value, Mapping):
        return {k: to_attribute_value(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return {to_attribute_value(v) for v in value}
    if isinstance(value, (list, tuple)):
        return [to_attribute_value(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def model_to_item(item: Any) -> Dict[str, Any]:
    """Convert a pydantic model or mapping into a DynamoDB item.

    Raises:
        TypeError: If the item is neither a pydantic model nor a mapping
    """
    if isinstance(item, BaseModel):
        dumped = item.model_dump(by_alias=True, exclude_none=True)
    elif isinstance(item, Mapping):
        dumped = dict(item)
    else:
        raise TypeError(f"Unsupported item type: {type(item).__name__}")
    return {k: to_attribute_value(v) for k, v in dumped.items()}


def item_to_model(item: Dict[str, Any], model_class: Optional[Type[BaseModel]] = None) -> Any:
    """Decode a DynamoDB item; raw dict when no model class is given."""
    if model_class is None:
        return dict(item)
    return model_class.model_validate(item)


def assign_item(target: Any, item: Dict[str, Any]) -> None:
    """Fill an output item in place.

    Args:
        target: dict (replaced by the item) or pydantic model instance
            (every field re-validated from the item)
        item: DynamoDB item

    Raises:
        TypeError: If the target cannot be filled in place
    """
    if isinstance(target, dict):
        target.clear()
        target.update(item)
        return
    if isinstance(target, BaseModel):
        decoded = type(target).model_validate(item)
        for name in type(target).model_fields:
            setattr(target, name, getattr(decoded, name))
        return
    raise TypeError(f"Cannot decode an item into {type(target).__name__}")


def to_sequence(value: Any) -> List[Any]:
    """Return the elements of a list or tuple.

    Raises:
        InvalidSequenceError: If the value is not a list or tuple
    """
    if isinstance(value, (list, tuple)):
        return list(value)
    raise InvalidSequenceError(context={'type': type(value).__name__})
