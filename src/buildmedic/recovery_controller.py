"""
Recovery controller: one end-to-end diagnose -> remediate -> verify attempt.

States: IDLE -> ANALYZING -> (no errors: DONE) | (REMEDIATING -> VERIFYING -> DONE)

Analysis commands run sequentially because remediation needs the complete
error picture and the commands share on-disk caches. Exactly one pass is made
per ``recover()`` call; callers wanting retries call it again.

Propagation policy:
- Analysis command failures are expected and become BuildError data.
- Remediation failures are absorbed per error by the dispatcher.
- Anything else aborts the attempt, is logged, and reports ``False``.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

from .attempt_log import AttemptLog, JsonlAttemptLog
from .ci.command_runner import CommandRunner
from .config import Settings
from .exceptions import CommandFailedError
from .file_patcher import FilePatcher
from .logging_config import correlation_id_var
from .models import BuildError, ErrorCategory, RecoveryAttempt, RecoveryStats, Severity
from .output_parsers import OutputParser, default_parsers
from .remediation import RemediationDispatcher

logger = logging.getLogger(__name__)

# analysis stage -> CommandSettings attribute
STAGE_COMMANDS: Dict[str, str] = {
    "type-check": "type_check",
    "lint": "lint",
    "build": "build",
}


class RecoveryState(Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    REMEDIATING = "remediating"
    VERIFYING = "verifying"
    DONE = "done"


def new_attempt_id() -> str:
    return f"recovery_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


class RecoveryController:
    """Orchestrates analysis, remediation, verification and attempt recording.

    One controller is expected per project checkout; remediations mutate
    shared on-disk state and no cross-process locking is attempted.
    """

    def __init__(
        self,
        settings: Settings,
        runner: Optional[CommandRunner] = None,
        parsers: Optional[Dict[str, OutputParser]] = None,
        dispatcher: Optional[RemediationDispatcher] = None,
        attempt_log: Optional[AttemptLog] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.runner = runner or CommandRunner(cwd=settings.project_root)
        self.parsers = parsers if parsers is not None else default_parsers()
        self.dispatcher = dispatcher or RemediationDispatcher(
            settings, self.runner, FilePatcher(settings.project_root)
        )
        self.attempt_log = attempt_log if attempt_log is not None else AttemptLog()
        self.clock = clock
        self.state = RecoveryState.IDLE
        logger.info("CI recovery controller initialized")

    @classmethod
    def from_settings(cls, settings: Settings) -> "RecoveryController":
        """Build a controller, persisting history when ``history_path`` is set."""
        history_path = settings.resolved_history_path()
        attempt_log = JsonlAttemptLog(history_path) if history_path else AttemptLog()
        return cls(settings, attempt_log=attempt_log)

    def recover(self) -> bool:
        """Run one recovery attempt.

        Returns:
            True if the build is healthy (no errors, or verification passed).
            Never raises.
        """
        start = self.clock()
        attempt_id = new_attempt_id()
        token = correlation_id_var.set(attempt_id)

        errors: List[BuildError] = []
        actions: List[str] = []
        success = False

        logger.info(f"Starting recovery attempt: {attempt_id}")
        try:
            self.state = RecoveryState.ANALYZING
            self.analyze(into=errors)

            if not errors:
                logger.info("No build errors detected - system healthy")
                success = True
            else:
                warnings = sum(1 for e in errors if e.severity is Severity.WARNING)
                logger.info(f"Detected {len(errors)} build errors ({warnings} warnings)")

                self.state = RecoveryState.REMEDIATING
                actions = self.dispatcher.dispatch_all(errors)

                self.state = RecoveryState.VERIFYING
                success = self.verify()
        except Exception as e:
            logger.error(f"Recovery attempt {attempt_id} failed: {e}", exc_info=True)
            success = False
            if not errors:
                errors.append(
                    BuildError(
                        category=ErrorCategory.UNCLASSIFIED_FAILURE,
                        message=f"Recovery aborted during {self.state.value}: {type(e).__name__}: {e}",
                    )
                )

        duration = int(round((self.clock() - start) * 1000))
        self._record(
            RecoveryAttempt(
                id=attempt_id,
                timestamp=datetime.now(timezone.utc),
                success=success,
                duration=duration,
                errors=tuple(errors),
                actions=tuple(actions),
            )
        )

        logger.info(f"Recovery attempt {attempt_id} {'succeeded' if success else 'failed'} in {duration}ms")
        self.state = RecoveryState.DONE
        correlation_id_var.reset(token)
        return success

    def analyze(self, into: Optional[List[BuildError]] = None) -> List[BuildError]:
        """Run each analysis command and parse the output of the failing ones.

        Errors are appended to ``into`` stage by stage, so a caller holding the
        list keeps what was parsed before an unexpected exception.
        """
        errors: List[BuildError] = into if into is not None else []
        for stage, parser in self.parsers.items():
            command = getattr(self.settings.commands, STAGE_COMMANDS.get(stage, stage.replace("-", "_")))
            logger.info(f"Running {stage} analysis: {command}")
            try:
                self.runner.run(command)
            except CommandFailedError as e:
                found = parser.parse(e.output)
                logger.info(f"{stage} analysis failed (exit {e.returncode}); parsed {len(found)} errors")
                if not found and self.settings.detect_unclassified_failures:
                    found = [
                        BuildError(
                            category=ErrorCategory.UNCLASSIFIED_FAILURE,
                            message=f"{stage} command failed with exit code {e.returncode} "
                            "and produced no recognized diagnostics",
                        )
                    ]
                errors.extend(found)
        return errors

    def verify(self) -> bool:
        """Run the narrower verification build; its exit code decides success."""
        command = self.settings.commands.verify
        logger.info(f"Verifying build: {command}")
        result = self.runner.execute(command)
        if result.passed:
            logger.info("Verification build passed")
        else:
            logger.error(f"Verification build failed (exit {result.returncode})")
        return result.passed

    def _record(self, attempt: RecoveryAttempt) -> None:
        try:
            self.attempt_log.append(attempt)
        except OSError as e:
            logger.error(f"Failed to record recovery attempt {attempt.id}: {e}")

    def get_recovery_stats(self) -> RecoveryStats:
        """Read-only snapshot over every recorded attempt."""
        return self.attempt_log.stats()
