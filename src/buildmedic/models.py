"""Data model for build diagnosis and recovery.

BuildError and RecoveryAttempt are immutable records; RecoveryStats is the
pydantic snapshot handed to external reporting.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class ErrorCategory(Enum):
    """Classification of a detected build problem."""

    TYPE_ERROR = "type-error"
    LINT_ISSUE = "lint-issue"
    DEPENDENCY_ISSUE = "dependency-issue"
    CONFIGURATION_ISSUE = "configuration-issue"
    UNCLASSIFIED_FAILURE = "unclassified-failure"  # opt-in, never remediated


class Severity(Enum):
    """Only ERROR counts toward attempt failure."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class BuildError:
    """A single problem detected in analysis output.

    Attributes:
        category: Error classification
        message: Diagnostic text, also used for remediation pattern matching
        severity: error or warning
        file: Offending source file (None for whole-project errors)
        line: 1-based line number, only meaningful with ``file``
    """

    category: ErrorCategory
    message: str
    severity: Severity = Severity.ERROR
    file: Optional[str] = None
    line: Optional[int] = None

    @property
    def location(self) -> Optional[str]:
        if self.file is None:
            return None
        if self.line is None:
            return self.file
        return f"{self.file}:{self.line}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "file": self.file,
            "line": self.line,
            "message": self.message,
            "severity": self.severity.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuildError":
        return cls(
            category=ErrorCategory(data["category"]),
            message=data["message"],
            severity=Severity(data.get("severity", "error")),
            file=data.get("file"),
            line=data.get("line"),
        )


@dataclass(frozen=True)
class RecoveryAttempt:
    """One diagnose -> remediate -> verify cycle.

    ``errors`` keeps detection order (type-check, lint, build). ``actions`` may
    be non-empty on a failed attempt.
    """

    id: str
    timestamp: datetime
    success: bool
    duration: int  # milliseconds
    errors: Tuple[BuildError, ...] = field(default_factory=tuple)
    actions: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSONL persistence."""
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "errors": [e.to_dict() for e in self.errors],
            "actions": list(self.actions),
            "success": self.success,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecoveryAttempt":
        return cls(
            id=data["id"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            success=bool(data["success"]),
            duration=int(data.get("duration", 0)),
            errors=tuple(BuildError.from_dict(e) for e in data.get("errors", [])),
            actions=tuple(data.get("actions", [])),
        )


class RecoveryStats(BaseModel):
    """Read-only aggregate over the attempt log."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    total_attempts: int = Field(0, alias="totalAttempts")
    success_rate: float = Field(0.0, alias="successRate")
    average_duration: float = Field(0.0, alias="averageDuration")
    common_errors: List[str] = Field(default_factory=list, alias="commonErrors")

    def to_report(self) -> Dict[str, Any]:
        """Dump using the camelCase keys dashboards expect."""
        return self.model_dump(by_alias=True)
