from __future__ import annotations

import asyncio
from typing import Any, List

import pytest
from pydantic import BaseModel

from replaycore import (
    AttemptLimitExceeded,
    Orchestrator,
    OrchestratorConfig,
    ResultLog,
    TaskCatalog,
    TaskExecutionError,
)


async def add_workflow(tasks: Any) -> int:
    x = await tasks.add(5, 3)
    y = await tasks.add(x, 3)
    return y


def _counting_add(calls: List[tuple]):
    def add(a: int, b: int) -> int:
        calls.append((a, b))
        return a + b

    return add


def test_execute_runs_scenario_a_to_completion() -> None:
    calls: List[tuple] = []
    log = ResultLog()

    out = Orchestrator({"add": _counting_add(calls)}).execute_sync(add_workflow, log)

    assert out.is_completed
    assert out.value == 11
    assert log.values() == [8, 11]
    # Each body ran exactly once, out-of-band.
    assert calls == [(5, 3), (8, 3)]
    assert [e.task_name for e in log.entries()] == ["add", "add"]


def test_each_step_advances_the_suspension_ordinal_by_one() -> None:
    orchestrator = Orchestrator({"add": lambda a, b: a + b})
    log = ResultLog()

    async def drive() -> List[Any]:
        seen: List[Any] = []
        while True:
            length_before = len(log)
            out = await orchestrator.step(add_workflow, log)
            if out.is_completed:
                seen.append(("completed", out.value))
                return seen
            assert out.suspension is not None
            seen.append(out.suspension.ordinal)
            assert len(log) == length_before + 1

    assert asyncio.run(drive()) == [0, 1, ("completed", 11)]


def test_failing_task_body_is_not_appended_and_is_not_treated_as_resolved() -> None:
    boom = RuntimeError("downstream unavailable")

    def add(a: int, b: int) -> int:
        raise boom

    orchestrator = Orchestrator({"add": add})
    log = ResultLog()

    out = orchestrator.execute_sync(add_workflow, log)
    assert out.is_failed
    assert isinstance(out.error, TaskExecutionError)
    assert out.error.__cause__ is boom
    assert out.error.suspension.ordinal == 0
    assert len(log) == 0

    # Replaying the same log suspends on the same call again.
    instance, tasks = orchestrator.new_instance(log)
    again = instance.run_sync(add_workflow, tasks)
    assert again.is_suspended
    assert again.suspension is not None
    assert again.suspension.ordinal == 0


def test_workflow_errors_surface_unmodified() -> None:
    class Rejected(Exception):
        pass

    async def workflow(tasks: Any) -> None:
        total = await tasks.add(1, 1)
        if total == 2:
            raise Rejected("total too small")

    log = ResultLog()
    out = Orchestrator({"add": lambda a, b: a + b}).execute_sync(workflow, log)
    assert out.is_failed
    assert isinstance(out.error, Rejected)
    assert log.values() == [2]


def test_async_task_bodies_are_awaited() -> None:
    async def fetch(key: str) -> str:
        await asyncio.sleep(0)
        return key.upper()

    async def workflow(tasks: Any) -> str:
        a = await tasks.fetch("a")
        b = await tasks.fetch("b")
        return a + b

    out = Orchestrator({"fetch": fetch}).execute_sync(workflow)
    assert out.value == "AB"


def test_attempt_limit_bounds_execute() -> None:
    orchestrator = Orchestrator(
        {"add": lambda a, b: a + b},
        config=OrchestratorConfig(max_attempts=2),
    )
    log = ResultLog()
    with pytest.raises(AttemptLimitExceeded) as exc:
        orchestrator.execute_sync(add_workflow, log)
    assert exc.value.max_attempts == 2
    # Both attempts made progress before the limit was hit.
    assert log.values() == [8, 11]


def test_resuming_from_an_existing_log_only_runs_remaining_tasks() -> None:
    calls: List[tuple] = []
    log = ResultLog()
    log.append(8, task_name="add", args=(5, 3))

    out = Orchestrator({"add": _counting_add(calls)}).execute_sync(add_workflow, log)
    assert out.value == 11
    assert calls == [(8, 3)]


class GreetParams(BaseModel):
    name: str
    excited: bool = False


def test_execute_with_catalog_validates_and_invokes_typed_bodies() -> None:
    catalog = TaskCatalog()

    @catalog.task("greet", description="Build a greeting", parameters=GreetParams)
    def greet(params: GreetParams) -> str:
        return f"hello {params.name}" + ("!" if params.excited else "")

    async def workflow(tasks: Any) -> List[str]:
        plain = await tasks.greet(name="ada")
        loud = await tasks.greet(name="bob", excited="true")
        return [plain, loud]

    log = ResultLog()
    out = Orchestrator(catalog).execute_sync(workflow, log)
    assert out.value == ["hello ada", "hello bob!"]
    assert log.entries()[1].kwargs == {"name": "bob", "excited": True}


def test_config_rejects_non_positive_attempt_limits() -> None:
    with pytest.raises(ValueError):
        OrchestratorConfig(max_attempts=0)
    assert OrchestratorConfig().with_overrides(max_attempts=None).max_attempts is None
