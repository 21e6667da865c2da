"""External command execution for buildmedic."""

from .command_runner import CommandExecutor, CommandResult, CommandRunner, subprocess_executor

__all__ = ["CommandExecutor", "CommandResult", "CommandRunner", "subprocess_executor"]
