"""Unit tests for external process execution."""

import sys

import pytest

from bearssl_sys.packages.process import (
    COMMAND_NOT_FOUND,
    ExternalProcessError,
    ProcessResult,
    run_process,
)


class TestRunProcess:
    """Test run_process()."""

    def test_success_captures_output(self):
        result = run_process([sys.executable, "-c", "print('hello')"])

        assert result.ok
        assert result.returncode == 0
        assert result.stdout.strip() == "hello"

    def test_nonzero_exit_is_returned(self):
        """A failing process is reported, not raised."""
        result = run_process([sys.executable, "-c", "import sys; sys.exit(3)"])

        assert not result.ok
        assert result.returncode == 3

    def test_working_directory(self, tmp_path):
        result = run_process(
            [sys.executable, "-c", "import os; print(os.getcwd())"], cwd=tmp_path
        )

        assert result.stdout.strip() == str(tmp_path)

    def test_missing_executable(self, tmp_path):
        result = run_process([str(tmp_path / "no-such-tool")])

        assert result.returncode == COMMAND_NOT_FOUND
        assert not result.ok


class TestProcessResult:
    """Test ProcessResult.check()."""

    def test_check_returns_self(self):
        result = ProcessResult(["true"], 0)

        assert result.check("compilation") is result

    def test_check_raises_with_exit_status(self):
        result = ProcessResult(["cc", "-c", "x.c"], 1, "", "x.c: error\n")

        with pytest.raises(ExternalProcessError) as exc_info:
            result.check("compilation")

        error = exc_info.value
        assert error.stage == "compilation"
        assert error.returncode == 1
        assert error.command == ["cc", "-c", "x.c"]
        assert "exit status 1" in str(error)
        assert "x.c: error" in str(error)
