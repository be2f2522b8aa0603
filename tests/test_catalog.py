from __future__ import annotations

from typing import List

import pytest
from pydantic import BaseModel

from replaycore import (
    DuplicateRegistrationError,
    TaskCatalog,
    TaskParameterError,
    UnknownTaskError,
    create_instance,
)


class AddParams(BaseModel):
    a: int
    b: int


class GreetParams(BaseModel):
    foo: str


def _catalog() -> TaskCatalog:
    catalog = TaskCatalog()
    catalog.register("add", lambda p: p.a + p.b, name="Add", description="Sum two integers", parameters=AddParams)
    return catalog


def test_register_and_get_definition() -> None:
    catalog = _catalog()
    definition = catalog.get("add")
    assert definition.name == "Add"
    assert definition.description == "Sum two integers"
    assert "add" in catalog
    assert len(catalog) == 1
    assert [d.task_id for d in catalog.list()] == ["add"]

    info = definition.to_dict()
    assert info["id"] == "add"
    assert set(info["parameters"]["properties"]) == {"a", "b"}
    assert info["is_async"] is False


def test_duplicate_task_id_is_rejected() -> None:
    catalog = _catalog()
    with pytest.raises(DuplicateRegistrationError, match="already exists"):
        catalog.register("add", lambda p: 0, parameters=AddParams)
    # Still a KeyError for callers that treat the catalog as a mapping.
    with pytest.raises(KeyError):
        catalog.register("add", lambda p: 0)


def test_register_validates_inputs() -> None:
    catalog = TaskCatalog()
    with pytest.raises(ValueError):
        catalog.register("  ", lambda: None)
    with pytest.raises(TypeError):
        catalog.register("t", "not callable")  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        catalog.register("t", lambda: None, parameters=dict)  # type: ignore[arg-type]


def test_unknown_task_lookup() -> None:
    with pytest.raises(UnknownTaskError):
        TaskCatalog().get("missing")


def test_decorator_registers_and_returns_body() -> None:
    catalog = TaskCatalog()

    @catalog.task("my-task", name="My Task", description="This is my task", parameters=GreetParams)
    async def my_task(params: GreetParams) -> str:
        return params.foo

    assert catalog.get("my-task").body is my_task
    assert catalog.get("my-task").to_dict()["is_async"] is True


def test_validate_coerces_and_dumps_json_mode() -> None:
    definition = _catalog().get("add")
    assert definition.validate(a="5", b=3) == {"a": 5, "b": 3}
    with pytest.raises(TaskParameterError) as exc:
        definition.validate(a="five", b=3)
    assert exc.value.task_id == "add"
    assert exc.value.errors


def test_invoke_passes_model_instance_to_body() -> None:
    assert _catalog().get("add").invoke(a=2, b=2) == 4


def test_task_without_parameter_model_receives_kwargs() -> None:
    catalog = TaskCatalog()
    catalog.register("concat", lambda left, right: left + right)
    definition = catalog.get("concat")
    assert definition.validate(left="a", right="b") == {"left": "a", "right": "b"}
    assert definition.invoke(left="a", right="b") == "ab"


def test_bound_tasks_suspend_with_validated_kwargs() -> None:
    catalog = _catalog()
    instance = create_instance([8])
    tasks = catalog.bind(instance)

    async def workflow() -> int:
        x = await tasks.add(a=5, b=3)
        return await tasks.add(a=x, b="3")

    out = instance.run_sync(workflow)
    assert out.is_suspended
    assert out.suspension is not None
    assert out.suspension.task_name == "add"
    assert out.suspension.kwargs == {"a": 8, "b": 3}
    assert out.suspension.args == ()


def test_invalid_arguments_fail_the_attempt_before_reaching_the_engine() -> None:
    catalog = _catalog()
    instance = create_instance()
    tasks = catalog.bind(instance)

    async def workflow() -> int:
        return await tasks.add(a="not a number", b=1)

    out = instance.run_sync(workflow)
    assert out.is_failed
    assert isinstance(out.error, TaskParameterError)
    # Validation failed before the call was numbered.
    assert instance.ordinal == 0


def test_bound_task_ids_with_dashes_are_reachable_by_key() -> None:
    catalog = TaskCatalog()
    seen: List[str] = []
    catalog.register("my-task", lambda p: seen.append(p.foo), parameters=GreetParams)
    tasks = catalog.bind(create_instance())
    assert "my-task" in tasks
    assert tasks["my-task"].__name__ == "my_task"
    assert set(catalog.bodies()) == {"my-task"}
