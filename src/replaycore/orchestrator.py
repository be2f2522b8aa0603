"""replaycore.orchestrator

In-process orchestrator: drive a workflow to completion by repeated attempts.

Each round trip:
1. create a fresh ExecutionInstance over the current ResultLog
2. run the workflow (it receives the wrapped tasks as its only argument)
3. on Suspended: execute the pending task body out-of-band and append its
   result at the suspended ordinal
4. re-run with the extended log

Exactly one task call is resolved per attempt. No retries: a failing task
body or workflow ends `execute()` with a Failed outcome and leaves the log as
it was before the failing step.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from .catalog.registry import TaskCatalog
from .core.config import OrchestratorConfig
from .core.errors import AttemptLimitExceeded, TaskExecutionError
from .core.instance import ExecutionInstance, TaskSet
from .core.models import RunOutcome, SuspensionRecord
from .logging import get_logger
from .storage.in_memory import ResultLog

logger = get_logger(__name__)

Workflow = Callable[[TaskSet], Union[Any, Awaitable[Any]]]


class Orchestrator:
    """Round-trip driver for workflows over a ResultLog.

    Example:
        catalog = TaskCatalog()
        catalog.register("add", lambda a, b: a + b)

        async def workflow(tasks):
            x = await tasks.add(a=5, b=3)
            return await tasks.add(a=x, b=3)

        outcome = Orchestrator(catalog).execute_sync(workflow)
        assert outcome.value == 11
    """

    def __init__(
        self,
        tasks: Union[TaskCatalog, Mapping[str, Callable[..., Any]]],
        *,
        config: Optional[OrchestratorConfig] = None,
    ):
        self._tasks = tasks
        self._config: OrchestratorConfig = config or OrchestratorConfig()

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    def new_instance(self, log: ResultLog) -> "tuple[ExecutionInstance, TaskSet]":
        instance = ExecutionInstance(log, config=self._config.engine)
        if isinstance(self._tasks, TaskCatalog):
            task_set = self._tasks.bind(instance)
        else:
            task_set = instance.wrap_tasks(self._tasks)
        return instance, task_set

    async def step(self, workflow: Workflow, log: ResultLog) -> RunOutcome:
        """Run one attempt and, if it suspended, resolve the pending call into `log`."""
        instance, task_set = self.new_instance(log)
        outcome = await instance.run(workflow, task_set)
        if not outcome.is_suspended:
            return outcome

        suspension = outcome.suspension
        assert suspension is not None
        try:
            value = await self._execute_task(instance, suspension)
        except Exception as e:
            logger.error(
                "task_failed",
                task=suspension.task_name,
                ordinal=suspension.ordinal,
                error=f"{type(e).__name__}: {e}",
            )
            error = TaskExecutionError(suspension)
            error.__cause__ = e
            return RunOutcome.failed(error, ordinals_used=outcome.ordinals_used, replayed=outcome.replayed)

        log.record(suspension, value)
        logger.debug("result_appended", task=suspension.task_name, ordinal=suspension.ordinal, log_length=len(log))
        return outcome

    async def execute(self, workflow: Workflow, log: Optional[ResultLog] = None) -> RunOutcome:
        """Run attempts until the workflow completes or fails.

        Raises:
            AttemptLimitExceeded: If `config.max_attempts` attempts all suspended.
        """
        log = log if log is not None else ResultLog()
        max_attempts = self._config.max_attempts
        attempts = 0
        while True:
            if max_attempts is not None and attempts >= max_attempts:
                raise AttemptLimitExceeded(max_attempts)
            attempts += 1
            outcome = await self.step(workflow, log)
            if not outcome.is_suspended:
                return outcome

    def execute_sync(self, workflow: Workflow, log: Optional[ResultLog] = None) -> RunOutcome:
        return asyncio.run(self.execute(workflow, log))

    async def _execute_task(self, instance: ExecutionInstance, suspension: SuspensionRecord) -> Any:
        body = instance.body_for(suspension.task_name)
        logger.debug("task_executing", task=suspension.task_name, ordinal=suspension.ordinal)
        result = body(*suspension.args, **suspension.kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result
