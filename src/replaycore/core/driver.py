"""replaycore.core.driver

Workflow driver: run one attempt to completion or suspension.

The workflow runs as an asyncio task raced against the instance's suspension
signal. The first unresolved task call fires the signal; awaiting any
unresolved call unwinds its branch with CancelledError, the driver cancels
whatever is left of the workflow task and reports `Suspended`. Suspension is
never raised into workflow code as an ordinary exception, so `except
Exception` blocks in a workflow cannot intercept it.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable

from ..logging import get_logger
from .errors import ReplayDivergenceError
from .models import AttemptStatus, RunOutcome, SuspensionRecord

logger = get_logger(__name__)


async def _invoke(workflow: Callable[..., Any], args: tuple, kwargs: dict) -> Any:
    result = workflow(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


async def drive(instance: Any, workflow: Callable[..., Any], *args: Any, **kwargs: Any) -> RunOutcome:
    """Run `workflow(*args, **kwargs)` as one attempt on `instance`.

    Returns:
        RunOutcome.completed(value) when the workflow returns,
        RunOutcome.suspended(record) at the first call with no logged result,
        RunOutcome.failed(error) for any other exception (including replay divergence).

    Raises:
        AttemptStateError: If an attempt is already running on `instance`.
    """
    loop = asyncio.get_running_loop()
    signal = instance._begin_attempt(loop)
    workflow_name = getattr(workflow, "__qualname__", repr(workflow))
    logger.debug(
        "attempt_started",
        workflow=workflow_name,
        log_length=len(instance._entries),
        ordinals_used=0,
    )

    task = loop.create_task(_invoke(workflow, args, kwargs))
    try:
        await asyncio.wait({task, signal}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        # Abandoned attempt: the result log was never touched, nothing to undo.
        task.cancel()
        instance._abandon_attempt()
        raise

    # The instance state decides, not the signal: a wrapper invoked off the loop
    # thread records its suspension immediately but wakes the loop later.
    reason = instance.interruption
    if reason is not None:
        if not task.done():
            task.cancel()
        # Unresolved calls awaited while unwinding raise CancelledError at once,
        # so draining the workflow task always terminates.
        await asyncio.gather(task, return_exceptions=True)
        return _interrupted(instance, workflow_name, reason)

    used = instance.ordinal
    replayed = instance.replayed

    if task.cancelled():
        error: BaseException = asyncio.CancelledError()
    else:
        error = task.exception()  # type: ignore[assignment]
    if error is not None:
        instance._finish_attempt(AttemptStatus.FAILED)
        logger.warning(
            "attempt_failed",
            workflow=workflow_name,
            ordinals_used=used,
            error=f"{type(error).__name__}: {error}",
        )
        return RunOutcome.failed(error, ordinals_used=used, replayed=replayed)

    instance._finish_attempt(AttemptStatus.COMPLETED)
    logger.info("attempt_completed", workflow=workflow_name, ordinals_used=used, replayed=replayed)
    return RunOutcome.completed(task.result(), ordinals_used=used, replayed=replayed)


def _interrupted(instance: Any, workflow_name: str, reason: Any) -> RunOutcome:
    used = instance.ordinal
    replayed = instance.replayed

    if isinstance(reason, ReplayDivergenceError):
        instance._finish_attempt(AttemptStatus.FAILED)
        logger.error(
            "replay_diverged",
            workflow=workflow_name,
            ordinal=reason.ordinal,
            expected=reason.expected,
            actual=reason.actual,
            ordinals_used=used,
        )
        return RunOutcome.failed(reason, ordinals_used=used, replayed=replayed)

    assert isinstance(reason, SuspensionRecord)
    instance._finish_attempt(AttemptStatus.SUSPENDED)
    logger.info(
        "attempt_suspended",
        workflow=workflow_name,
        task=reason.task_name,
        ordinal=reason.ordinal,
        ordinals_used=used,
        replayed=replayed,
    )
    return RunOutcome.suspended(reason, ordinals_used=used, replayed=replayed)
