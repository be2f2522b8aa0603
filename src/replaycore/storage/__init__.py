"""Result log storage (in-memory only; durable persistence is the orchestrator host's concern)."""

from .in_memory import ResultLog

__all__ = ["ResultLog"]
