"""replaycore.core.config

Configuration for the replay engine and the orchestrator.

Both are frozen dataclasses: build a new one with `with_overrides()` rather
than mutating a shared instance.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Optional

# Upper bound on attempts for `Orchestrator.execute`. Each attempt resolves at
# most one task call, so this is also the bound on task calls per workflow.
DEFAULT_MAX_ATTEMPTS = 1000


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for an ExecutionInstance.

    Attributes:
        verify_replay: Fail the attempt when a log entry records a task name
            different from the call replaying it (default: True). Entries with
            no recorded name are never checked.
    """

    verify_replay: bool = True

    def with_overrides(self, **overrides: Any) -> "EngineConfig":
        return replace(self, **overrides)


@dataclass(frozen=True)
class OrchestratorConfig:
    """Configuration for the round-trip Orchestrator.

    Attributes:
        max_attempts: Maximum attempts per `execute()` call; None disables the bound.
        engine: EngineConfig used for every instance the orchestrator creates.

    Example:
        >>> cfg = OrchestratorConfig(max_attempts=10)
        >>> cfg.with_overrides(max_attempts=None).max_attempts is None
        True
    """

    max_attempts: Optional[int] = DEFAULT_MAX_ATTEMPTS
    engine: EngineConfig = field(default_factory=EngineConfig)

    def __post_init__(self) -> None:
        if self.max_attempts is not None and int(self.max_attempts) < 1:
            raise ValueError("max_attempts must be >= 1 (or None)")

    def with_overrides(self, **overrides: Any) -> "OrchestratorConfig":
        return replace(self, **overrides)
