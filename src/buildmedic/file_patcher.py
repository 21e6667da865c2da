"""Single-line source patching used by remediation routines."""

import logging
from pathlib import Path
from typing import Callable, Optional, Union

from .exceptions import PatchError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class FilePatcher:
    """Reads a UTF-8 text file, transforms one line and writes it back.

    Relative paths resolve against ``root``. Line endings are preserved.
    """

    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root) if root is not None else Path.cwd()

    def resolve(self, path: PathLike) -> Path:
        p = Path(path)
        return p if p.is_absolute() else self.root / p

    def read_text(self, path: PathLike) -> str:
        target = self.resolve(path)
        try:
            with open(target, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except OSError as e:
            raise PatchError(f"Cannot read {target}: {e}", path=str(path)) from e

    def write_text(self, path: PathLike, content: str) -> None:
        target = self.resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "w", encoding="utf-8", newline="") as f:
                f.write(content)
        except OSError as e:
            raise PatchError(f"Cannot write {target}: {e}", path=str(path)) from e

    def patch_line(self, path: PathLike, line_number: int, transform: Callable[[str], str]) -> bool:
        """Apply ``transform`` to a 1-based line.

        Args:
            path: File to patch
            line_number: 1-based line number
            transform: Receives the line without its terminator, returns the new line

        Returns:
            True if the file changed, False if the transform was a no-op

        Raises:
            PatchError: If the file cannot be read/written or the line is out of range
        """
        content = self.read_text(path)
        lines = content.splitlines(keepends=True)

        if line_number < 1 or line_number > len(lines):
            raise PatchError(
                f"Line {line_number} out of range for {path} ({len(lines)} lines)",
                path=str(path),
                line=line_number,
            )

        original = lines[line_number - 1]
        body = original.rstrip("\r\n")
        ending = original[len(body):]
        patched = transform(body)
        if patched == body:
            return False

        lines[line_number - 1] = patched + ending
        self.write_text(path, "".join(lines))
        logger.debug(f"Patched {path}:{line_number}")
        return True
