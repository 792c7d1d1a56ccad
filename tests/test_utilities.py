"""Tests for the log_exceptions decorator."""

import logging

import pytest

from espserial.tools import log_exceptions


@log_exceptions
def failing_phase(reason):
    raise RuntimeError(reason)


@log_exceptions
def passing_phase(value):
    return value * 2


class TestLogExceptions:

    def test_reraises(self):
        with pytest.raises(RuntimeError, match="firmware hung"):
            failing_phase("firmware hung")

    def test_logs_with_traceback(self, caplog):
        with pytest.raises(RuntimeError):
            failing_phase("firmware hung")

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.name == __name__
        assert record.getMessage() == "Exception in failing_phase: firmware hung"
        assert record.exc_info is not None

    def test_lazy_arguments(self, caplog):
        with pytest.raises(RuntimeError):
            failing_phase("boom")

        record = caplog.records[-1]
        assert record.msg == "Exception in %s: %s"
        assert record.args[0] == "failing_phase"

    def test_passes_return_value(self, caplog):
        assert passing_phase(21) == 42
        assert caplog.records == []

    def test_preserves_metadata(self):
        assert failing_phase.__name__ == "failing_phase"
