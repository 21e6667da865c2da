"""Append-only history of recovery attempts and the metrics derived from it.

Statistics are computed on demand from the recorded attempts; there are no
incremental counters to keep in sync.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Iterable, Iterator, List, Tuple

from .models import RecoveryAttempt, RecoveryStats

logger = logging.getLogger(__name__)

COMMON_ERRORS_LIMIT = 5


def compute_stats(attempts: Iterable[RecoveryAttempt], limit: int = COMMON_ERRORS_LIMIT) -> RecoveryStats:
    """Aggregate attempts into a RecoveryStats snapshot.

    Common errors are ranked by raw message equality; ties keep first-seen order.
    """
    attempts = list(attempts)
    total = len(attempts)
    if total == 0:
        return RecoveryStats()

    successful = sum(1 for attempt in attempts if attempt.success)
    average_duration = sum(attempt.duration for attempt in attempts) / total

    error_counts: Counter = Counter()
    for attempt in attempts:
        for error in attempt.errors:
            error_counts[error.message] += 1

    return RecoveryStats(
        total_attempts=total,
        success_rate=successful / total,
        average_duration=average_duration,
        common_errors=[message for message, _ in error_counts.most_common(limit)],
    )


class AttemptLog:
    """In-memory attempt store, owned by whoever constructs the controller."""

    def __init__(self, attempts: Iterable[RecoveryAttempt] = ()):
        self._attempts: List[RecoveryAttempt] = list(attempts)

    def append(self, attempt: RecoveryAttempt) -> None:
        self._attempts.append(attempt)

    @property
    def attempts(self) -> Tuple[RecoveryAttempt, ...]:
        return tuple(self._attempts)

    def stats(self) -> RecoveryStats:
        return compute_stats(self._attempts)

    def __len__(self) -> int:
        return len(self._attempts)

    def __iter__(self) -> Iterator[RecoveryAttempt]:
        return iter(self.attempts)


class JsonlAttemptLog(AttemptLog):
    """Attempt store persisted as one JSON object per line.

    Existing history is loaded on construction; each append is written
    through immediately.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(self._load())

    def _load(self) -> List[RecoveryAttempt]:
        if not self.path.exists():
            return []

        attempts: List[RecoveryAttempt] = []
        with open(self.path, "r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    attempts.append(RecoveryAttempt.from_dict(json.loads(line)))
                except (ValueError, KeyError, TypeError) as e:
                    logger.warning(f"Skipping malformed attempt record {self.path}:{lineno}: {e}")
        return attempts

    def append(self, attempt: RecoveryAttempt) -> None:
        """Record in memory, then write through.

        Raises:
            OSError: If the history file cannot be written; the attempt is
                still counted in memory
        """
        super().append(attempt)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(attempt.to_dict()) + "\n")
