"""Task catalog (ids, metadata, typed parameters, bodies)."""

from .registry import TaskCatalog, TaskDefinition

__all__ = ["TaskCatalog", "TaskDefinition"]
