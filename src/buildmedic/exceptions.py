"""Custom exceptions for buildmedic."""


class BuildMedicError(Exception):
    """Base exception for all buildmedic errors."""

    pass


class CommandFailedError(BuildMedicError):
    """Exception raised when an external command exits non-zero.

    Diagnostic tools exit non-zero when they report problems, so callers
    inspect ``output`` rather than treating this as a hard failure.
    """

    def __init__(self, command: str, returncode: int, output: str):
        """
        Initialize command failure.

        Args:
            command: Command string that was executed
            returncode: Process exit code
            output: Captured stdout and stderr
        """
        super().__init__(f"Command failed (exit {returncode}): {command}")
        self.command = command
        self.returncode = returncode
        self.output = output


class PatchError(BuildMedicError):
    """Exception raised when a source file cannot be patched."""

    def __init__(self, message: str, path: str = None, line: int = None):
        super().__init__(message)
        self.path = path
        self.line = line


class ConfigError(BuildMedicError):
    """Exception raised for invalid configuration."""

    pass
