"""buildmedic - build-failure diagnosis and remediation engine.

Runs the analysis commands of a build pipeline, classifies their output into
BuildErrors, applies rule-based remediations, re-verifies the build and keeps
a history of recovery attempts.
"""

from .models import BuildError, ErrorCategory, RecoveryAttempt, RecoveryStats, Severity
from .recovery_controller import RecoveryController

__version__ = "0.1.0"

__all__ = [
    "BuildError",
    "ErrorCategory",
    "RecoveryAttempt",
    "RecoveryController",
    "RecoveryStats",
    "Severity",
    "__version__",
]
