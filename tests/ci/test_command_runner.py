"""Contract tests for CommandRunner.

Validates that commands run through the shell, that output is captured on
both success and failure, and that failures carry the captured text.
"""

from unittest.mock import Mock, patch

import pytest

from buildmedic.ci.command_runner import CommandRunner, subprocess_executor
from buildmedic.exceptions import CommandFailedError


class TestSubprocessExecutor:
    """Test suite for the default shell executor."""

    def test_runs_through_shell_in_cwd(self, tmp_path):
        mock_result = Mock(returncode=0, stdout="ok\n", stderr="")

        with patch("subprocess.run", return_value=mock_result) as mock_run:
            output, returncode = subprocess_executor(tmp_path)("npm run lint --workspaces")

        assert (output, returncode) == ("ok\n", 0)
        args, kwargs = mock_run.call_args
        assert args[0] == "npm run lint --workspaces"
        assert kwargs["shell"] is True
        assert kwargs["cwd"] == str(tmp_path)
        assert kwargs["capture_output"] is True
        assert "timeout" not in kwargs

    def test_stderr_is_appended_to_stdout(self):
        mock_result = Mock(returncode=2, stdout="src/a.ts:1:1 - error TS1: x", stderr="npm ERR! lifecycle")

        with patch("subprocess.run", return_value=mock_result):
            output, returncode = subprocess_executor()("npm run type-check")

        assert returncode == 2
        assert output == "src/a.ts:1:1 - error TS1: x\nnpm ERR! lifecycle"

    def test_stderr_only(self):
        mock_result = Mock(returncode=1, stdout="", stderr="boom")

        with patch("subprocess.run", return_value=mock_result):
            output, _ = subprocess_executor()("false")

        assert output == "boom"

    def test_real_shell_command(self, tmp_path):
        output, returncode = subprocess_executor(tmp_path)("echo hello && echo oops 1>&2 && exit 3")

        assert returncode == 3
        assert "hello" in output
        assert "oops" in output


class TestCommandRunner:
    """Test suite for CommandRunner contract."""

    def test_run_returns_output_on_success(self, runner, executor):
        executor.responses["npm run build"] = ("built", 0)

        assert runner.run("npm run build") == "built"
        assert executor.calls == ["npm run build"]

    def test_run_raises_with_captured_output(self, runner, executor):
        executor.responses["npm run lint"] = ("  1:1  error  no-var", 1)

        with pytest.raises(CommandFailedError) as excinfo:
            runner.run("npm run lint")

        assert excinfo.value.output == "  1:1  error  no-var"
        assert excinfo.value.returncode == 1
        assert excinfo.value.command == "npm run lint"
        assert "exit 1" in str(excinfo.value)

    def test_execute_never_raises_on_nonzero_exit(self, runner, executor):
        executor.responses["npm run build"] = ("Failed to compile.", 2)

        result = runner.execute("npm run build")

        assert result.passed is False
        assert result.returncode == 2
        assert result.output == "Failed to compile."
        assert result.duration_seconds >= 0

    def test_default_executor_uses_cwd(self, tmp_path):
        mock_result = Mock(returncode=0, stdout="", stderr="")

        with patch("subprocess.run", return_value=mock_result) as mock_run:
            CommandRunner(cwd=tmp_path).run("true")

        assert mock_run.call_args.kwargs["cwd"] == str(tmp_path)

    def test_os_errors_propagate(self, tmp_path):
        with patch("subprocess.run", side_effect=OSError("no shell")):
            with pytest.raises(OSError):
                CommandRunner(cwd=tmp_path).execute("true")

