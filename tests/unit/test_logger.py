import logging

import pytest

from dynamodb_access.core import Context
from dynamodb_access.observability import NopLog, StdLog, new_nop_log


class TestNopLog:
    def test_chaining_returns_same_logger(self):
        log = new_nop_log()

        assert isinstance(log, NopLog)
        assert log.with_context(Context()).with_field("a", 1).with_fields({"b": 2}) is log
        log.info("ignored")
        log.warn("ignored")
        log.error("ignored")


class TestStdLog:
    """Test the standard logging adapter."""

    @pytest.fixture
    def logger(self):
        return logging.getLogger("dynamodb_access.tests")

    def test_message_without_fields(self, logger, caplog):
        with caplog.at_level(logging.INFO, logger=logger.name):
            StdLog(logger).info("no item found")

        assert caplog.records[-1].getMessage() == "no item found"
        assert caplog.records[-1].fields == {}

    def test_fields_are_appended(self, logger, caplog):
        log = StdLog(logger).with_field("table_name", "UserTable")

        with caplog.at_level(logging.INFO, logger=logger.name):
            log.warn("ConditionalCheckFailedException")

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.getMessage() == "ConditionalCheckFailedException (table_name=UserTable)"
        assert record.fields == {"table_name": "UserTable"}

    def test_context_fields_merged(self, logger, caplog):
        ctx = Context(fields={"trace_id": "abc", "table_name": "ignored"})
        log = StdLog(logger).with_field("table_name", "UserTable").with_context(ctx)

        with caplog.at_level(logging.ERROR, logger=logger.name):
            log.error("failed")

        assert caplog.records[-1].fields == {"trace_id": "abc", "table_name": "UserTable"}

    def test_with_fields_does_not_mutate(self, logger):
        base = StdLog(logger)
        child = base.with_fields({"a": 1})

        assert base.fields == {}
        assert child.fields == {"a": 1}

    def test_default_logger_name(self):
        assert StdLog().logger.name == "dynamodb_access"
