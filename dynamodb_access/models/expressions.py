from enum import Enum
from typing import Any, Dict


class UpdateExpression(str, Enum):
    """Kinds of attribute mutation understood by the update operations."""

    SET = "set"
    SET_IF_NOT_EXISTS = "set_if_not_exists"
    # attribute stored as a DynamoDB set (string/number/binary set)
    SET_SET = "set_set"
    # numeric increment or set union
    ADD = "add"
    # templated expression with `$` name and `?` value placeholders
    SET_EXPR = "set_expr"


# Maps an expression kind to the attributes (or templates) it applies to.
UpdateExpressions = Dict[UpdateExpression, Dict[str, Any]]
