"""Command runner for build analysis and remediation commands.

Executes one shell command at a time, synchronously, and captures its output.
No timeout is applied here; an overall deadline belongs to whatever embeds
the recovery controller.
"""

import logging
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from ..exceptions import CommandFailedError

logger = logging.getLogger(__name__)

# Host boundary: command string -> (captured output, exit code)
CommandExecutor = Callable[[str], Tuple[str, int]]


@dataclass
class CommandResult:
    """Result of one command execution."""

    command: str
    returncode: int
    output: str
    duration_seconds: float

    @property
    def passed(self) -> bool:
        return self.returncode == 0


def subprocess_executor(cwd: Optional[Path] = None, env: Optional[Dict[str, str]] = None) -> CommandExecutor:
    """Build an executor running commands through the system shell.

    stdout and stderr are captured separately and joined, stderr last.
    """

    def _execute(command: str) -> Tuple[str, int]:
        result = subprocess.run(
            command,
            cwd=str(cwd) if cwd is not None else None,
            env=env,
            shell=True,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
        output = result.stdout or ""
        if result.stderr:
            output = f"{output}\n{result.stderr}" if output else result.stderr
        return output, result.returncode

    return _execute


class CommandRunner:
    """Runs build-related shell commands.

    Responsibilities:
    1. Execute a command and capture its output
    2. Report non-zero exits with the captured text attached
    """

    def __init__(self, cwd: Optional[Path] = None, executor: Optional[CommandExecutor] = None):
        self.cwd = cwd
        self.executor = executor or subprocess_executor(cwd)

    def execute(self, command: str) -> CommandResult:
        """Run a command and return its result whatever the exit code."""
        logger.debug(f"Running command: {command}")
        start_time = time.monotonic()
        output, returncode = self.executor(command)
        duration = time.monotonic() - start_time

        if returncode == 0:
            logger.debug(f"Command passed in {duration:.1f}s: {command}")
        else:
            logger.debug(f"Command failed (exit {returncode}) in {duration:.1f}s: {command}")

        return CommandResult(
            command=command,
            returncode=returncode,
            output=output,
            duration_seconds=round(duration, 3),
        )

    def run(self, command: str) -> str:
        """Run a command and return its captured output.

        Raises:
            CommandFailedError: If the command exits non-zero; carries the output
        """
        result = self.execute(command)
        if not result.passed:
            raise CommandFailedError(command, result.returncode, result.output)
        return result.output
