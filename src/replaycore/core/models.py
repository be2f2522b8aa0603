"""replaycore.core.models

Plain data types shared by the engine, the result log and the orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class AttemptStatus(str, Enum):
    INIT = "init"
    RUNNING = "running"
    COMPLETED = "completed"
    SUSPENDED = "suspended"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (AttemptStatus.COMPLETED, AttemptStatus.SUSPENDED, AttemptStatus.FAILED)


@dataclass(frozen=True)
class SuspensionRecord:
    """The first call of an attempt that had no entry in the result log.

    `ordinal` is the log position the orchestrator must fill before the next
    attempt can get past this call.
    """

    task_name: str
    args: Tuple[Any, ...]
    kwargs: Dict[str, Any]
    ordinal: int

    @property
    def arguments(self) -> Tuple[Any, ...]:
        return self.args

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_name": self.task_name,
            "args": list(self.args),
            "kwargs": dict(self.kwargs),
            "ordinal": self.ordinal,
        }


@dataclass(frozen=True)
class LogEntry:
    """One result in a ResultLog.

    `task_name`/`args`/`kwargs` describe the call that produced the value and
    are optional; when `task_name` is known it is used to detect replay
    divergence.
    """

    ordinal: int
    value: Any
    task_name: Optional[str] = None
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)
    recorded_at: Optional[str] = None


@dataclass(frozen=True)
class RunOutcome:
    """Result of driving one attempt: Completed | Suspended | Failed."""

    status: AttemptStatus
    value: Any = None
    suspension: Optional[SuspensionRecord] = None
    error: Optional[BaseException] = None
    ordinals_used: int = 0
    replayed: int = 0

    @classmethod
    def completed(cls, value: Any = None, *, ordinals_used: int = 0, replayed: int = 0) -> "RunOutcome":
        return cls(status=AttemptStatus.COMPLETED, value=value, ordinals_used=ordinals_used, replayed=replayed)

    @classmethod
    def suspended(
        cls, suspension: SuspensionRecord, *, ordinals_used: int = 0, replayed: int = 0
    ) -> "RunOutcome":
        return cls(
            status=AttemptStatus.SUSPENDED,
            suspension=suspension,
            ordinals_used=ordinals_used,
            replayed=replayed,
        )

    @classmethod
    def failed(cls, error: BaseException, *, ordinals_used: int = 0, replayed: int = 0) -> "RunOutcome":
        return cls(status=AttemptStatus.FAILED, error=error, ordinals_used=ordinals_used, replayed=replayed)

    @property
    def is_completed(self) -> bool:
        return self.status == AttemptStatus.COMPLETED

    @property
    def is_suspended(self) -> bool:
        return self.status == AttemptStatus.SUSPENDED

    @property
    def is_failed(self) -> bool:
        return self.status == AttemptStatus.FAILED

    def unwrap(self) -> Any:
        """Return the completed value, re-raise a failure, or raise on suspension."""
        if self.status == AttemptStatus.COMPLETED:
            return self.value
        if self.status == AttemptStatus.FAILED and self.error is not None:
            raise self.error
        raise ValueError(f"Attempt did not complete (status={self.status.value})")
