"""
replaycore

Durable-execution primitive (suspend → record result → replay).

An async workflow calls wrapped tasks. Each call is numbered by its position
in the workflow's deterministic call sequence (its ordinal). Calls whose
ordinal is already in the result log are answered from it; the first call
past the end of the log suspends the attempt. An orchestrator executes that
task out-of-band, appends the result and re-runs the workflow from the start.

Durable persistence of the log, distributed coordination and retry policy are
left to the host that embeds this package.
"""

from .catalog import TaskCatalog, TaskDefinition
from .core.config import EngineConfig, OrchestratorConfig
from .core.errors import (
    AttemptLimitExceeded,
    AttemptStateError,
    DuplicateRegistrationError,
    ReplayCoreError,
    ReplayDivergenceError,
    ResultLogOrderError,
    TaskExecutionError,
    TaskParameterError,
    UnknownTaskError,
)
from .core.instance import ExecutionInstance, TaskCall, TaskSet, create_instance
from .core.models import AttemptStatus, LogEntry, RunOutcome, SuspensionRecord
from .logging import configure_logging, get_logger
from .orchestrator import Orchestrator
from .storage.in_memory import ResultLog

__all__ = [
    # Engine
    "create_instance",
    "ExecutionInstance",
    "TaskCall",
    "TaskSet",
    # Models
    "AttemptStatus",
    "LogEntry",
    "RunOutcome",
    "SuspensionRecord",
    "ResultLog",
    # Catalog + orchestration
    "TaskCatalog",
    "TaskDefinition",
    "Orchestrator",
    # Config
    "EngineConfig",
    "OrchestratorConfig",
    # Errors
    "ReplayCoreError",
    "ReplayDivergenceError",
    "AttemptStateError",
    "ResultLogOrderError",
    "DuplicateRegistrationError",
    "UnknownTaskError",
    "TaskParameterError",
    "TaskExecutionError",
    "AttemptLimitExceeded",
    # Logging
    "configure_logging",
    "get_logger",
]
