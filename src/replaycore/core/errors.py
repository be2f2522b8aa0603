"""replaycore.core.errors

Exception hierarchy.

Suspension is deliberately absent: it is a control-flow outcome
(`RunOutcome.suspended`), never an exception a workflow could catch.
"""

from __future__ import annotations

from typing import Any, Optional


class ReplayCoreError(Exception):
    """Base class for errors raised by replaycore."""


class ReplayDivergenceError(ReplayCoreError):
    """A replayed call does not match the task that produced the log entry."""

    def __init__(self, *, ordinal: int, expected: str, actual: str):
        self.ordinal = ordinal
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Replay diverged at ordinal {ordinal}: log entry was produced by "
            f"'{expected}' but the workflow called '{actual}'"
        )


class AttemptStateError(ReplayCoreError):
    """Raised when an instance is driven while an attempt is already running."""


class ResultLogOrderError(ReplayCoreError):
    """Raised when a result is appended at an ordinal other than the log's end."""


class DuplicateRegistrationError(ReplayCoreError, KeyError):
    """Raised when a task id is registered twice in the same catalog."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""


class UnknownTaskError(ReplayCoreError, KeyError):
    """Raised when no body is registered under a task name."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class TaskParameterError(ReplayCoreError, ValueError):
    """Task arguments failed parameter-schema validation."""

    def __init__(self, task_id: str, errors: Any):
        self.task_id = task_id
        self.errors = errors
        super().__init__(f"Invalid parameters for task '{task_id}': {errors}")


class TaskExecutionError(ReplayCoreError):
    """An out-of-band task body raised; the original error is the __cause__."""

    def __init__(self, suspension: Any, message: Optional[str] = None):
        self.suspension = suspension
        name = getattr(suspension, "task_name", "?")
        ordinal = getattr(suspension, "ordinal", "?")
        super().__init__(message or f"Task '{name}' failed at ordinal {ordinal}")


class AttemptLimitExceeded(ReplayCoreError):
    """The orchestrator ran out of attempts before the workflow finished."""

    def __init__(self, max_attempts: int):
        self.max_attempts = max_attempts
        super().__init__(f"Workflow did not finish within {max_attempts} attempts")
