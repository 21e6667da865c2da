"""
Remediation dispatcher: maps a BuildError to its category-specific fix.

Fixes are deterministic rules keyed to recognized diagnostic text. Unrecognized
diagnostics are left alone. Every fix routine returns human-readable action
strings; a routine that fails degrades to a "Failed to ..." action and never
stops the remaining errors from being handled.

Project-wide fixes (lint auto-fix, dependency reinstall, configuration reset,
schema regeneration) run at most once per attempt; module installs run once
per distinct package.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set

from .ci.command_runner import CommandRunner
from .config import DEFAULT_TSCONFIG, Settings
from .exceptions import CommandFailedError, PatchError
from .file_patcher import FilePatcher
from .models import BuildError, ErrorCategory

logger = logging.getLogger(__name__)

_RE_MODULE_QUOTED = re.compile(r"(?:Cannot find module|module not found:?)\s+'(?P<module>[^']+)'", re.IGNORECASE)
_RE_MODULE_BARE = re.compile(r"module not found:?\s+(?P<module>[@\w][\w@./-]*)", re.IGNORECASE)
_RE_SAFE_PACKAGE = re.compile(r"^(?:@[\w.-]+/)?[\w.-]+$")
_RE_UNUSED = re.compile(r"'(?P<name>[^']+)' is declared but (?:its value is )?never read")
_RE_MISSING_RETURN_TYPE = re.compile(r"missing return type", re.IGNORECASE)

_SCHEMA_MARKERS = ("prisma",)
IGNORED_PREFIX = "_"
PERMISSIVE_RETURN_TYPE = "any"


def extract_module_name(message: str) -> Optional[str]:
    """Return the module specifier named by a "module not found" diagnostic."""
    match = _RE_MODULE_QUOTED.search(message) or _RE_MODULE_BARE.search(message)
    return match.group("module") if match else None


def package_for_module(specifier: str) -> Optional[str]:
    """Map an import specifier to the installable package name.

    ``lodash/fp`` -> ``lodash``, ``@scope/pkg/sub`` -> ``@scope/pkg``.
    Relative/absolute paths and anything unsafe for a shell return None.
    """
    if specifier.startswith((".", "/")):
        return None
    parts = specifier.split("/")
    package = "/".join(parts[:2]) if specifier.startswith("@") else parts[0]
    if not _RE_SAFE_PACKAGE.match(package):
        return None
    return package


def prefix_identifier(line: str, name: str, prefix: str = IGNORED_PREFIX) -> str:
    """Rename the first whole-word occurrence of ``name`` on the line."""
    pattern = re.compile(rf"(?<![\w$]){re.escape(name)}(?![\w$])")
    return pattern.sub(prefix + name, line, count=1)


def add_return_type(line: str, annotation: str = PERMISSIVE_RETURN_TYPE) -> str:
    """Annotate an unannotated function signature with a permissive return type.

    Lines that already contain a ``:`` are treated as annotated and left as-is.
    """
    if ":" in line:
        return line
    if "function" in line:
        return re.sub(r"\)\s*\{", f"): {annotation} {{", line, count=1)
    if "=>" in line:
        return re.sub(r"\)\s*=>", f"): {annotation} =>", line, count=1)
    return line


class RemediationDispatcher:
    """Selects and invokes the fix routine for each BuildError."""

    def __init__(
        self,
        settings: Settings,
        runner: CommandRunner,
        patcher: Optional[FilePatcher] = None,
    ):
        self.settings = settings
        self.commands = settings.commands
        self.runner = runner
        self.patcher = patcher or FilePatcher(settings.project_root)
        self._completed: Set[str] = set()
        self._handlers: Dict[ErrorCategory, Callable[[BuildError], List[str]]] = {
            ErrorCategory.TYPE_ERROR: self.fix_type_error,
            ErrorCategory.LINT_ISSUE: self.fix_lint_issue,
            ErrorCategory.DEPENDENCY_ISSUE: self.fix_dependency_issue,
            ErrorCategory.CONFIGURATION_ISSUE: self.fix_configuration_issue,
        }

    def begin_attempt(self) -> None:
        """Forget which once-per-attempt fixes already ran."""
        self._completed.clear()

    def dispatch_all(self, errors: Iterable[BuildError]) -> List[str]:
        """Start a new attempt and remediate every error in order."""
        self.begin_attempt()
        actions: List[str] = []
        for error in errors:
            actions.extend(self.dispatch(error))
        return actions

    def dispatch(self, error: BuildError) -> List[str]:
        """Remediate one error. Never raises."""
        handler = self._handlers.get(error.category)
        if handler is None:
            logger.debug(f"No remediation for {error.category.value}: {error.message}")
            return []
        try:
            return handler(error)
        except Exception as e:
            logger.error(f"Failed to remediate {error.category.value} ({error.message}): {e}", exc_info=True)
            where = f" in {error.location}" if error.location else ""
            return [f"Failed to remediate {error.category.value}{where}: {e}"]

    def _once(self, key: str) -> bool:
        """True the first time ``key`` is seen in this attempt."""
        if key in self._completed:
            return False
        self._completed.add(key)
        return True

    def _run_action(self, command: str, success: str, failure: str) -> str:
        try:
            self.runner.run(command)
        except CommandFailedError as e:
            logger.error(f"{failure} (exit {e.returncode})")
            return failure
        logger.info(success)
        return success

    # ------------------------------------------------------------------
    # type-error
    # ------------------------------------------------------------------

    def fix_type_error(self, error: BuildError) -> List[str]:
        actions: List[str] = []
        message = error.message

        module = extract_module_name(message)
        if module:
            action = self.install_module(module)
            if action:
                actions.append(action)

        unused = _RE_UNUSED.search(message)
        if unused:
            actions.append(self.fix_unused_variable(error, unused.group("name")))

        if _RE_MISSING_RETURN_TYPE.search(message):
            actions.append(self.fix_missing_return_type(error))

        if not actions:
            logger.debug(f"Leaving unrecognized type error unaddressed: {message}")
        return actions

    def install_module(self, module: str) -> Optional[str]:
        package = package_for_module(module)
        if package is None:
            logger.warning(f"Not installing module '{module}': not an installable package name")
            return f"Skipped install of module: {module} (not an installable package)"
        if not self._once(f"install:{package}"):
            return None
        command = self.commands.install_module.format(module=package)
        return self._run_action(
            command,
            success=f"Installed missing module: {module}",
            failure=f"Failed to install module: {module}",
        )

    def fix_unused_variable(self, error: BuildError, name: str) -> str:
        if not error.file or not error.line:
            return f"Cannot fix unused variable '{name}': no source location"
        location = f"{error.file}:{error.line}"
        if name.startswith(IGNORED_PREFIX):
            return f"Unused variable '{name}' in {location} already ignored"
        try:
            changed = self.patcher.patch_line(error.file, error.line, lambda line: prefix_identifier(line, name))
        except PatchError as e:
            logger.error(f"Failed to fix unused variable in {location}: {e}")
            return f"Failed to fix unused variable in {location}"
        if not changed:
            return f"Could not find '{name}' in {location}"
        logger.info(f"Fixed unused variable '{name}' in {location}")
        return f"Fixed unused variable '{name}' in {location}"

    def fix_missing_return_type(self, error: BuildError) -> str:
        if not error.file or not error.line:
            return "Cannot add return type annotation: no source location"
        location = f"{error.file}:{error.line}"
        try:
            changed = self.patcher.patch_line(error.file, error.line, add_return_type)
        except PatchError as e:
            logger.error(f"Failed to add return type in {location}: {e}")
            return f"Failed to add return type annotation in {location}"
        if not changed:
            return f"Could not add return type annotation in {location}"
        logger.info(f"Added return type annotation in {location}")
        return f"Added return type annotation in {location}"

    # ------------------------------------------------------------------
    # lint / dependency
    # ------------------------------------------------------------------

    def fix_lint_issue(self, error: BuildError) -> List[str]:
        if not self._once("lint-fix"):
            return []
        return [self._run_action(self.commands.lint_fix, "Applied lint auto-fixes", "Lint auto-fix failed")]

    def fix_dependency_issue(self, error: BuildError) -> List[str]:
        if not self._once("dependency-reinstall"):
            return []
        try:
            self.runner.run(self.commands.clean_dependencies)
            self.runner.run(self.commands.install_dependencies)
        except CommandFailedError as e:
            logger.error(f"Failed to reinstall dependencies: {e}")
            return ["Failed to reinstall dependencies"]
        logger.info("Reinstalled dependencies")
        return ["Reinstalled dependencies"]

    # ------------------------------------------------------------------
    # configuration
    # ------------------------------------------------------------------

    def fix_configuration_issue(self, error: BuildError) -> List[str]:
        actions: List[str] = []
        message = error.message.lower()

        config_marker = Path(self.settings.compiler_config_filename).stem.lower()
        if config_marker in message and self._once("config-reset"):
            actions.append(self.reset_compiler_config())

        if any(marker in message for marker in _SCHEMA_MARKERS) and self._once("schema-generate"):
            actions.append(
                self._run_action(
                    self.commands.generate_schema,
                    success="Regenerated Prisma client",
                    failure="Failed to regenerate Prisma client",
                )
            )
        return actions

    def reset_compiler_config(self) -> str:
        """Overwrite the compiler configuration with the known-good default."""
        filename = self.settings.compiler_config_filename
        try:
            self.patcher.write_text(filename, json.dumps(DEFAULT_TSCONFIG, indent=2) + "\n")
        except PatchError as e:
            logger.error(f"Failed to reset {filename}: {e}")
            return f"Failed to reset TypeScript configuration ({filename})"
        logger.info(f"Reset TypeScript configuration ({filename})")
        return f"Reset TypeScript configuration ({filename})"
