"""
Output parsers: raw analysis command output -> list of BuildError.

Each parser is a pure, line-local function of the command's text. Tool output
formats differ too much for a structured approach, and remediation only needs
coarse classification. Any parser can be swapped for a structured-output
variant (e.g. JSON diagnostics) as long as it satisfies ``OutputParser``.
"""

from __future__ import annotations

import re
from typing import Dict, Iterator, List, Protocol

from .models import BuildError, ErrorCategory, Severity

_RE_ANSI = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")

# "src/a.ts:10:3 - error TS6133: 'x' is declared but its value is never read."
# Column is optional.
_RE_TYPECHECK_DASH = re.compile(
    r"^(?P<file>.+?):(?P<line>\d+)(?::(?P<column>\d+))? - error (?P<code>[A-Za-z]+\d+): (?P<message>.+)$"
)
# "src/a.ts(10,3): error TS6133: ..."  (tsc --pretty false)
_RE_TYPECHECK_PAREN = re.compile(
    r"^(?P<file>.+?)\((?P<line>\d+),(?P<column>\d+)\): error (?P<code>[A-Za-z]+\d+): (?P<message>.+)$"
)

_BUILD_FAILURE_MARKERS = ("ERROR", "Failed")
_DEPENDENCY_MARKERS = ("ERESOLVE", "Could not resolve dependency", "peer dep", "npm ERR! 404")


class OutputParser(Protocol):
    """Narrow interface every parser satisfies."""

    def parse(self, raw_text: str) -> List[BuildError]: ...


def _lines(raw_text: str) -> Iterator[str]:
    if not raw_text:
        return
    for line in raw_text.splitlines():
        yield _RE_ANSI.sub("", line)


class TypeCheckParser:
    """Parses compiler diagnostics of the form ``file:line:col - error CODE: message``."""

    def parse(self, raw_text: str) -> List[BuildError]:
        errors: List[BuildError] = []
        for line in _lines(raw_text):
            stripped = line.strip()
            match = _RE_TYPECHECK_DASH.match(stripped) or _RE_TYPECHECK_PAREN.match(stripped)
            if not match:
                continue
            errors.append(
                BuildError(
                    category=ErrorCategory.TYPE_ERROR,
                    file=match.group("file"),
                    line=int(match.group("line")),
                    message=match.group("message").strip(),
                    severity=Severity.ERROR,
                )
            )
        return errors


class LintParser:
    """Permissive: any line mentioning ``error`` or ``warning`` is a lint issue."""

    def parse(self, raw_text: str) -> List[BuildError]:
        errors: List[BuildError] = []
        for line in _lines(raw_text):
            has_error = "error" in line
            if not has_error and "warning" not in line:
                continue
            errors.append(
                BuildError(
                    category=ErrorCategory.LINT_ISSUE,
                    message=line.strip(),
                    severity=Severity.ERROR if has_error else Severity.WARNING,
                )
            )
        return errors


class BuildParser:
    """Catches compile/packaging failures not attributable to type-check or lint.

    Lines with a dependency-resolution marker are dependency issues, even when
    they also carry ``ERROR``. Remaining ``ERROR``/``Failed`` lines are
    configuration issues.
    """

    def parse(self, raw_text: str) -> List[BuildError]:
        errors: List[BuildError] = []
        for line in _lines(raw_text):
            if any(marker in line for marker in _DEPENDENCY_MARKERS):
                category = ErrorCategory.DEPENDENCY_ISSUE
            elif any(marker in line for marker in _BUILD_FAILURE_MARKERS):
                category = ErrorCategory.CONFIGURATION_ISSUE
            else:
                continue
            errors.append(BuildError(category=category, message=line.strip(), severity=Severity.ERROR))
        return errors


def default_parsers() -> Dict[str, OutputParser]:
    """Parsers keyed by analysis stage, in detection order."""
    return {
        "type-check": TypeCheckParser(),
        "lint": LintParser(),
        "build": BuildParser(),
    }
