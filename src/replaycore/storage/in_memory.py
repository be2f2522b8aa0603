"""replaycore.storage.in_memory

In-memory, append-only result log.

The log is owned by the orchestrator and outlives individual attempts.
Instances only ever read a snapshot of it.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union, overload

from ..core.errors import ResultLogOrderError
from ..core.models import LogEntry, SuspensionRecord, utc_now_iso


class ResultLog(Sequence[Any]):
    """Append-only log of task results indexed by call ordinal.

    Indexing and iteration yield result *values*, so a ResultLog can stand in
    wherever a plain list of results is expected. `entries()` exposes the full
    LogEntry records.
    """

    def __init__(self, values: Optional[Sequence[Any]] = None):
        self._lock = threading.Lock()
        self._entries: List[LogEntry] = []
        for value in values or ():
            self.append(value)

    @overload
    def __getitem__(self, index: int) -> Any: ...

    @overload
    def __getitem__(self, index: slice) -> List[Any]: ...

    def __getitem__(self, index: Union[int, slice]) -> Any:
        with self._lock:
            if isinstance(index, slice):
                return [e.value for e in self._entries[index]]
            return self._entries[index].value

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[Any]:
        return iter([e.value for e in self.entries()])

    def __repr__(self) -> str:
        return f"ResultLog({self.values()!r})"

    def values(self) -> List[Any]:
        return [e.value for e in self.entries()]

    def entries(self) -> Tuple[LogEntry, ...]:
        """Snapshot of all entries; later appends do not affect it."""
        with self._lock:
            return tuple(self._entries)

    def append(
        self,
        value: Any,
        *,
        task_name: Optional[str] = None,
        args: Tuple[Any, ...] = (),
        kwargs: Optional[Dict[str, Any]] = None,
    ) -> LogEntry:
        with self._lock:
            entry = LogEntry(
                ordinal=len(self._entries),
                value=value,
                task_name=task_name,
                args=tuple(args),
                kwargs=dict(kwargs or {}),
                recorded_at=utc_now_iso(),
            )
            self._entries.append(entry)
            return entry

    def record(self, suspension: SuspensionRecord, value: Any) -> LogEntry:
        """Append the result of a suspended call at exactly its ordinal."""
        with self._lock:
            expected = len(self._entries)
            if suspension.ordinal != expected:
                raise ResultLogOrderError(
                    f"Cannot record ordinal {suspension.ordinal} for '{suspension.task_name}': "
                    f"next free ordinal is {expected}"
                )
            entry = LogEntry(
                ordinal=expected,
                value=value,
                task_name=suspension.task_name,
                args=tuple(suspension.args),
                kwargs=dict(suspension.kwargs),
                recorded_at=utc_now_iso(),
            )
            self._entries.append(entry)
            return entry


def snapshot_entries(result_log: Sequence[Any]) -> Tuple[LogEntry, ...]:
    """Freeze any result log (ResultLog or plain sequence) into LogEntry records."""
    if isinstance(result_log, ResultLog):
        return result_log.entries()
    return tuple(LogEntry(ordinal=i, value=v) for i, v in enumerate(list(result_log)))
