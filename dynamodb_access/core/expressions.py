"""
DynamoDB expression compiler.

One ``ExpressionBuilder`` is used per request so update, condition and key
expressions share a single set of placeholders:

- attribute paths (``Meta.tags[0]``) are split on ``.``; every segment becomes
  a ``#n<i>`` name placeholder and list indexes are kept verbatim
- values become ``:v<i>`` value placeholders, converted for boto3
- templates use ``$`` for "next argument is an attribute name" and ``?`` for
  "next argument is a value"; everything else is copied as written

Example:
    builder = ExpressionBuilder()
    builder.set_expr("Meta.$ = ?", ["foo", "bar"])
    builder.update_expression()      # "SET Meta.#n0 = :v0"
    builder.attribute_names          # {"#n0": "foo"}
    builder.attribute_values         # {":v0": "bar"}
"""

import re
from typing import Any, Dict, List, Sequence

from ..models import UpdateExpression
from ..utils import to_attribute_value, to_sequence

_PATH_SEGMENT = re.compile(r"^([^\[\]]+)((?:\[\d+\])*)$")


class ExpressionBuilder:
    """Accumulates update clauses and placeholders for one request."""

    def __init__(self):
        self.attribute_names: Dict[str, str] = {}
        self.attribute_values: Dict[str, Any] = {}
        self._name_placeholders: Dict[str, str] = {}
        self._set: List[str] = []
        self._add: List[str] = []
        self._remove: List[str] = []

    def name(self, name: str) -> str:
        """Placeholder for a single attribute name, reused per name."""
        placeholder = self._name_placeholders.get(name)
        if placeholder is None:
            placeholder = f"#n{len(self._name_placeholders)}"
            self._name_placeholders[name] = placeholder
            self.attribute_names[placeholder] = name
        return placeholder

    def value(self, value: Any) -> str:
        placeholder = f":v{len(self.attribute_values)}"
        self.attribute_values[placeholder] = to_attribute_value(value)
        return placeholder

    def path(self, path: str) -> str:
        """Escape a document path such as ``Meta.items[2].name``.

        Raises:
            ValueError: If a path segment is empty or malformed
        """
        parts = []
        for segment in path.split("."):
            match = _PATH_SEGMENT.match(segment)
            if match is None:
                raise ValueError(f"Invalid attribute path: {path!r}")
            parts.append(self.name(match.group(1)) + match.group(2))
        return ".".join(parts)

    def compile(self, template: str, args: Sequence[Any]) -> str:
        """Substitute ``$`` and ``?`` in a template with placeholders.

        Raises:
            ValueError: If the template and argument count disagree
        """
        remaining = list(args)
        compiled = []
        for char in template:
            if char not in "$?":
                compiled.append(char)
                continue
            if not remaining:
                raise ValueError(f"Not enough arguments for expression {template!r}")
            arg = remaining.pop(0)
            compiled.append(self.name(str(arg)) if char == "$" else self.value(arg))
        if remaining:
            raise ValueError(f"Too many arguments for expression {template!r}")
        return "".join(compiled)

    # ------------------------------------------------------------------
    # Update clauses
    # ------------------------------------------------------------------

    def set(self, path: str, value: Any) -> None:
        self._set.append(f"{self.path(path)} = {self.value(value)}")

    def set_if_not_exists(self, path: str, value: Any) -> None:
        escaped = self.path(path)
        self._set.append(f"{escaped} = if_not_exists({escaped}, {self.value(value)})")

    def set_set(self, path: str, value: Any) -> None:
        """Store the value as a DynamoDB set; an empty set removes the attribute."""
        members = set(value) if isinstance(value, (set, frozenset)) else set(to_sequence(value))
        if not members:
            self._remove.append(self.path(path))
            return
        self.set(path, members)

    def add(self, path: str, value: Any) -> None:
        # ADD on a list means set union
        if isinstance(value, (list, tuple)):
            value = set(value)
        self._add.append(f"{self.path(path)} {self.value(value)}")

    def set_expr(self, template: str, args: Sequence[Any]) -> None:
        self._set.append(self.compile(template, args))

    def apply(self, expression: UpdateExpression, path: str, value: Any) -> None:
        """Dispatch one attribute update by expression kind.

        Raises:
            InvalidSequenceError: If a SET_EXPR value is not a list or tuple
        """
        expression = UpdateExpression(expression)
        if expression is UpdateExpression.SET:
            self.set(path, value)
        elif expression is UpdateExpression.SET_IF_NOT_EXISTS:
            self.set_if_not_exists(path, value)
        elif expression is UpdateExpression.SET_SET:
            self.set_set(path, value)
        elif expression is UpdateExpression.ADD:
            self.add(path, value)
        elif expression is UpdateExpression.SET_EXPR:
            self.set_expr(path, to_sequence(value))

    def update_expression(self) -> str:
        """Join the accumulated clauses into an UpdateExpression.

        Raises:
            ValueError: If no update was added
        """
        clauses = []
        if self._set:
            clauses.append("SET " + ", ".join(self._set))
        if self._add:
            clauses.append("ADD " + ", ".join(self._add))
        if self._remove:
            clauses.append("REMOVE " + ", ".join(self._remove))
        if not clauses:
            raise ValueError("No updates provided")
        return " ".join(clauses)

    def expression_kwargs(self) -> Dict[str, Any]:
        """ExpressionAttributeNames/Values, omitted when empty."""
        kwargs: Dict[str, Any] = {}
        if self.attribute_names:
            kwargs['ExpressionAttributeNames'] = self.attribute_names
        if self.attribute_values:
            kwargs['ExpressionAttributeValues'] = self.attribute_values
        return kwargs
