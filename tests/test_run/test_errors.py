"""Tests for pvwatch_run.errors."""

import signal

import pytest

from pvwatch_run.errors import ConfigurationError, ProcessError, RunError, RunStartError
from pvwatch_run.types import RunResult


class TestErrorHierarchy:
    def test_all_inherit_from_process_error(self):
        for err in (RunError("x"), RunStartError("x"), ConfigurationError("x")):
            assert isinstance(err, ProcessError)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            raise ConfigurationError("bad")

    def test_cause(self):
        cause = FileNotFoundError("nope")
        err = RunStartError("Can't start program", cause=cause)
        assert err.cause is cause
        assert str(err) == "Can't start program"


class TestRunError:
    def test_payload(self):
        err = RunError("Program exited with code 2", stdout="o", stderr="e", code=2)
        assert err.result == RunResult(stdout="o", stderr="e", code=2)
        assert err.signal is None

    def test_signal_from_negative_code(self):
        err = RunError("Program exited with code -9", code=-signal.SIGKILL)
        assert err.signal is signal.SIGKILL

    def test_unknown_signal_number(self):
        assert RunError("x", code=-999).signal is None
