"""replaycore.catalog.registry

Task catalog: task ids, descriptive metadata, typed parameters and bodies.

The catalog sits in front of the replay engine:
- ids are unique per catalog (no global registry; callers own the catalog)
- parameters are a pydantic model; arguments are validated before they reach
  an ExecutionInstance, so suspension records only ever carry valid,
  JSON-mode parameter dicts
- bodies receive the validated model instance (or plain kwargs when the task
  declares no parameter model)
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Type

from pydantic import BaseModel, ValidationError

from ..core.errors import DuplicateRegistrationError, TaskParameterError, UnknownTaskError
from ..core.instance import ExecutionInstance, TaskCall, TaskSet


@dataclass(frozen=True)
class TaskDefinition:
    task_id: str
    name: str
    description: str
    body: Callable[..., Any]
    parameters: Optional[Type[BaseModel]] = None

    def validate(self, **kwargs: Any) -> Dict[str, Any]:
        """Validate kwargs against the parameter model; return a JSON-mode dict."""
        if self.parameters is None:
            return dict(kwargs)
        return self._model(kwargs).model_dump(mode="json")

    def invoke(self, **kwargs: Any) -> Any:
        """Execute the body (used by the orchestrator, outside any attempt)."""
        if self.parameters is None:
            return self.body(**kwargs)
        return self.body(self._model(kwargs))

    def parameters_schema(self) -> Dict[str, Any]:
        if self.parameters is None:
            return {"type": "object"}
        return self.parameters.model_json_schema()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.task_id,
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters_schema(),
            "is_async": inspect.iscoroutinefunction(self.body),
        }

    def _model(self, kwargs: Dict[str, Any]) -> BaseModel:
        assert self.parameters is not None
        try:
            return self.parameters.model_validate(kwargs)
        except ValidationError as e:
            raise TaskParameterError(self.task_id, e.errors(include_url=False)) from e


class TaskCatalog:
    """Catalog mapping task ids to typed task definitions."""

    def __init__(self) -> None:
        self._tasks: Dict[str, TaskDefinition] = {}

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def __iter__(self) -> Iterator[TaskDefinition]:
        return iter(list(self._tasks.values()))

    def __len__(self) -> int:
        return len(self._tasks)

    def register(
        self,
        task_id: str,
        body: Callable[..., Any],
        *,
        name: Optional[str] = None,
        description: str = "",
        parameters: Optional[Type[BaseModel]] = None,
    ) -> TaskDefinition:
        tid = str(task_id or "").strip()
        if not tid:
            raise ValueError("task_id must be a non-empty string")
        if not callable(body):
            raise TypeError(f"Task body for '{tid}' must be callable")
        if parameters is not None and not (isinstance(parameters, type) and issubclass(parameters, BaseModel)):
            raise TypeError(f"parameters for '{tid}' must be a pydantic BaseModel subclass")
        if tid in self._tasks:
            raise DuplicateRegistrationError(f"Task {tid} already exists in this catalog")

        definition = TaskDefinition(
            task_id=tid,
            name=name or tid,
            description=description,
            body=body,
            parameters=parameters,
        )
        self._tasks[tid] = definition
        return definition

    def task(
        self,
        task_id: str,
        *,
        name: Optional[str] = None,
        description: str = "",
        parameters: Optional[Type[BaseModel]] = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of `register()`; returns the body unchanged."""

        def decorator(body: Callable[..., Any]) -> Callable[..., Any]:
            self.register(task_id, body, name=name, description=description, parameters=parameters)
            return body

        return decorator

    def get(self, task_id: str) -> TaskDefinition:
        try:
            return self._tasks[task_id]
        except KeyError:
            raise UnknownTaskError(f"Unknown task '{task_id}'") from None

    def list(self) -> List[TaskDefinition]:
        return list(self._tasks.values())

    def bind(self, instance: ExecutionInstance) -> TaskSet:
        """Wrap every task on `instance`; calls validate their kwargs first."""
        bound: Dict[str, Callable[..., TaskCall]] = {}
        for definition in self._tasks.values():
            bound[definition.task_id] = _bind_one(instance, definition)
        return TaskSet(bound)

    def bodies(self) -> Dict[str, Callable[..., Any]]:
        """Name -> executable body (validating) for out-of-band execution."""
        return {tid: d.invoke for tid, d in self._tasks.items()}


def _bind_one(instance: ExecutionInstance, definition: TaskDefinition) -> Callable[..., TaskCall]:
    wrapped = instance.wrap_task(definition.task_id, definition.invoke)

    def call(**kwargs: Any) -> TaskCall:
        return wrapped(**definition.validate(**kwargs))

    call.__name__ = definition.task_id.replace("-", "_")
    call.__doc__ = definition.description or None
    return call
