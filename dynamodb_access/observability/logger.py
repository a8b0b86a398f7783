"""
Logging capability consumed by the repository.

``LogInterface`` is the seam: every ``with_*`` call returns a logger carrying
the extra fields, so calls chain:

    log.with_context(ctx).with_field("table_name", "users").info("no item found")

``NopLog`` (the default) ignores everything, which keeps logging opt-in.
``StdLog`` writes through the standard ``logging`` module, appending the
fields to the message and passing them as ``extra={'fields': ...}`` for
handlers that want structured output.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..core.context import Context

DEFAULT_LOGGER_NAME = "dynamodb_access"


class LogInterface(ABC):
    """Minimal structured logger."""

    @abstractmethod
    def with_context(self, ctx: Optional[Context]) -> 'LogInterface':
        """Add the log fields carried by the context."""

    @abstractmethod
    def with_field(self, key: str, value: Any) -> 'LogInterface':
        pass

    @abstractmethod
    def with_fields(self, fields: Dict[str, Any]) -> 'LogInterface':
        pass

    @abstractmethod
    def info(self, message: str) -> None:
        pass

    @abstractmethod
    def warn(self, message: str) -> None:
        pass

    @abstractmethod
    def error(self, message: str) -> None:
        pass


class NopLog(LogInterface):
    """Logger that turns logging off."""

    def with_context(self, ctx: Optional[Context]) -> LogInterface:
        return self

    def with_field(self, key: str, value: Any) -> LogInterface:
        return self

    def with_fields(self, fields: Dict[str, Any]) -> LogInterface:
        return self

    def info(self, message: str) -> None:
        pass

    def warn(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass


_NOP_LOG = NopLog()


def new_nop_log() -> LogInterface:
    return _NOP_LOG


class StdLog(LogInterface):
    """LogInterface backed by a standard library logger."""

    def __init__(self, logger: Optional[logging.Logger] = None, fields: Optional[Dict[str, Any]] = None):
        self.logger = logger or logging.getLogger(DEFAULT_LOGGER_NAME)
        self.fields: Dict[str, Any] = dict(fields or {})

    def with_context(self, ctx: Optional[Context]) -> LogInterface:
        if ctx is None or not ctx.fields:
            return self
        # explicit fields win over context fields
        return StdLog(self.logger, {**ctx.fields, **self.fields})

    def with_field(self, key: str, value: Any) -> LogInterface:
        return StdLog(self.logger, {**self.fields, key: value})

    def with_fields(self, fields: Dict[str, Any]) -> LogInterface:
        return StdLog(self.logger, {**self.fields, **fields})

    def info(self, message: str) -> None:
        self._emit(logging.INFO, message)

    def warn(self, message: str) -> None:
        self._emit(logging.WARNING, message)

    def error(self, message: str) -> None:
        self._emit(logging.ERROR, message)

    def _emit(self, level: int, message: str) -> None:
        if self.fields:
            fields_str = ", ".join(f"{k}={v}" for k, v in self.fields.items())
            message = f"{message} ({fields_str})"
        self.logger.log(level, message, extra={'fields': dict(self.fields)})
