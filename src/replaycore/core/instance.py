"""replaycore.core.instance

Execution instance and task wrapping (positional memoization).

Key semantics:
- Every wrapped task invocation claims the next call ordinal, hit or miss.
- Ordinal `k` is answered from the result log when the log has an entry at `k`;
  the task body is never executed by the engine.
- The first call past the end of the log is recorded as the attempt's
  SuspensionRecord and the attempt is suspended (see `core.driver`).

Ordinals are claimed when the wrapped callable is *invoked*, not when its
result is awaited, so `a = t(1); b = t(2); await gather(a, b)` numbers the
calls in program order regardless of completion order.
"""

from __future__ import annotations

import asyncio
import functools
import threading
from typing import (
    Any,
    Callable,
    Dict,
    Generator,
    Iterator,
    Mapping,
    NoReturn,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from .config import EngineConfig
from .errors import AttemptStateError, ReplayDivergenceError, UnknownTaskError
from .models import AttemptStatus, LogEntry, RunOutcome, SuspensionRecord
from ..storage.in_memory import snapshot_entries

TaskBody = Callable[..., Any]

_MISSING = object()


class TaskCall:
    """Awaitable handle for one wrapped task invocation.

    Awaiting a replayed call returns the logged value without yielding to the
    event loop. Awaiting an unresolved call ends the awaiting branch with
    CancelledError; the driver reports the attempt as suspended.
    """

    __slots__ = ("task_name", "ordinal", "_instance", "_value")

    def __init__(self, instance: "ExecutionInstance", task_name: str, ordinal: int, value: Any = _MISSING):
        self.task_name = task_name
        self.ordinal = ordinal
        self._instance = instance
        self._value = value

    @property
    def replayed(self) -> bool:
        return self._value is not _MISSING

    def __await__(self) -> Generator[Any, None, Any]:
        if not self.replayed:
            self._instance._block(self)
        return self._value
        yield  # pragma: no cover  (generator marker; never reached)

    def __repr__(self) -> str:
        state = "replayed" if self.replayed else "pending"
        return f"<TaskCall {self.task_name}#{self.ordinal} {state}>"


class TaskSet(Mapping[str, Callable[..., TaskCall]]):
    """Read-only mapping of wrapped tasks; also allows `tasks.add(...)`."""

    def __init__(self, wrapped: Mapping[str, Callable[..., TaskCall]]):
        self._wrapped = dict(wrapped)

    def __getitem__(self, name: str) -> Callable[..., TaskCall]:
        return self._wrapped[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._wrapped)

    def __len__(self) -> int:
        return len(self._wrapped)

    def __getattr__(self, name: str) -> Callable[..., TaskCall]:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._wrapped[name]
        except KeyError:
            raise AttributeError(f"No task named '{name}'") from None

    def __repr__(self) -> str:
        return f"TaskSet({sorted(self._wrapped)!r})"


class ExecutionInstance:
    """Replay state of one attempt over a fixed result log.

    The instance owns the call ordinal and the suspension record. It only
    reads the result log, through a snapshot taken at construction and again
    whenever an attempt starts.
    """

    def __init__(self, result_log: Sequence[Any], *, config: Optional[EngineConfig] = None):
        self._result_log = result_log
        self._config: EngineConfig = config or EngineConfig()
        self._entries: Tuple[LogEntry, ...] = snapshot_entries(result_log)
        self._bodies: Dict[str, TaskBody] = {}

        self._lock = threading.Lock()
        self._ordinal = 0
        self._replayed = 0
        self._status = AttemptStatus.INIT
        self._suspension: Optional[SuspensionRecord] = None
        self._divergence: Optional[ReplayDivergenceError] = None
        # Whichever of suspension/divergence happened first this attempt.
        self._interrupt: Optional[Union[SuspensionRecord, ReplayDivergenceError]] = None
        self._signal: Optional["asyncio.Future[None]"] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._loop_thread: Optional[int] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def result_log(self) -> Sequence[Any]:
        return self._result_log

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def ordinal(self) -> int:
        """Next ordinal to be claimed (= number of calls made so far this attempt)."""
        with self._lock:
            return self._ordinal

    @property
    def replayed(self) -> int:
        """Number of calls answered from the log this attempt."""
        with self._lock:
            return self._replayed

    @property
    def status(self) -> AttemptStatus:
        return self._status

    @property
    def suspension(self) -> Optional[SuspensionRecord]:
        return self._suspension

    def wrap_task(self, name: str, body: TaskBody) -> Callable[..., TaskCall]:
        if not callable(body):
            raise TypeError(f"Task body for '{name}' must be callable")
        self._bodies[name] = body

        @functools.wraps(body)
        def call(*args: Any, **kwargs: Any) -> TaskCall:
            return self._call(name, args, kwargs)

        return call

    def wrap_tasks(self, tasks: Mapping[str, TaskBody]) -> TaskSet:
        return TaskSet({name: self.wrap_task(name, body) for name, body in tasks.items()})

    def body_for(self, name: str) -> TaskBody:
        try:
            return self._bodies[name]
        except KeyError:
            raise UnknownTaskError(f"No task body registered for '{name}'") from None

    async def run(self, workflow: Callable[..., Any], *args: Any, **kwargs: Any) -> RunOutcome:
        """Run one attempt of `workflow`. See `replaycore.core.driver.drive`."""
        from .driver import drive

        return await drive(self, workflow, *args, **kwargs)

    def run_sync(self, workflow: Callable[..., Any], *args: Any, **kwargs: Any) -> RunOutcome:
        """Blocking variant of `run()` for callers without an event loop."""
        return asyncio.run(self.run(workflow, *args, **kwargs))

    # ------------------------------------------------------------------
    # Replay
    # ------------------------------------------------------------------

    def _call(self, name: str, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> TaskCall:
        interrupted = False
        with self._lock:
            k = self._ordinal
            self._ordinal = k + 1
            entry = self._entries[k] if k < len(self._entries) else None
            if entry is None:
                # Only the first unresolved call of an attempt is surfaced.
                if self._suspension is None:
                    self._suspension = SuspensionRecord(
                        task_name=name, args=tuple(args), kwargs=dict(kwargs), ordinal=k
                    )
                    interrupted = self._interrupt_with(self._suspension)
            elif self._config.verify_replay and entry.task_name is not None and entry.task_name != name:
                if self._divergence is None:
                    self._divergence = ReplayDivergenceError(ordinal=k, expected=entry.task_name, actual=name)
                    interrupted = self._interrupt_with(self._divergence)
                entry = None
            else:
                self._replayed += 1

        if interrupted:
            self._notify()
        if entry is None:
            return TaskCall(self, name, k)
        return TaskCall(self, name, k, entry.value)

    def _interrupt_with(self, reason: Union[SuspensionRecord, ReplayDivergenceError]) -> bool:
        # Caller holds self._lock.
        if self._interrupt is not None:
            return False
        self._interrupt = reason
        return True

    def _notify(self) -> None:
        loop, signal = self._loop, self._signal
        if loop is None or signal is None:
            return
        if threading.get_ident() == self._loop_thread:
            _wake(signal)
        else:
            # Futures are not thread-safe; bound to this attempt's signal.
            loop.call_soon_threadsafe(_wake, signal)

    def _block(self, call: TaskCall) -> NoReturn:
        """Await path of an unresolved call: end the workflow's current branch.

        Raising CancelledError (a BaseException) unwinds the branch without
        giving `except Exception` handlers a chance to intercept it, and never
        leaves a pending future behind. Any unresolved call awaited after the
        attempt was interrupted, including from `finally` blocks, ends the same way.
        """
        if self._status == AttemptStatus.INIT:
            raise AttemptStateError(
                f"Task '{call.task_name}' (ordinal {call.ordinal}) has no logged result "
                "and is not running under a driver"
            )
        raise asyncio.CancelledError(f"attempt interrupted at task '{call.task_name}' (ordinal {call.ordinal})")

    # ------------------------------------------------------------------
    # Attempt lifecycle (driven by core.driver)
    # ------------------------------------------------------------------

    @property
    def interruption(self) -> Optional[Union[SuspensionRecord, ReplayDivergenceError]]:
        """First suspension or replay divergence of the current attempt, if any."""
        with self._lock:
            return self._interrupt

    def _begin_attempt(self, loop: asyncio.AbstractEventLoop) -> "asyncio.Future[None]":
        with self._lock:
            if self._status == AttemptStatus.RUNNING:
                raise AttemptStateError("An attempt is already running on this instance")
            self._status = AttemptStatus.RUNNING
            self._entries = snapshot_entries(self._result_log)
            self._ordinal = 0
            self._replayed = 0
            self._suspension = None
            self._divergence = None
            self._interrupt = None
            self._loop = loop
            self._loop_thread = threading.get_ident()
            self._signal = loop.create_future()
            return self._signal

    def _finish_attempt(self, status: AttemptStatus) -> None:
        self._status = status
        self._release_signal()

    def _abandon_attempt(self) -> None:
        self._status = AttemptStatus.INIT
        self._release_signal()

    def _release_signal(self) -> None:
        signal = self._signal
        if signal is not None and not signal.done():
            signal.cancel()
        self._signal = None
        self._loop = None
        self._loop_thread = None


def _wake(signal: "asyncio.Future[None]") -> None:
    if not signal.done():
        signal.set_result(None)


def create_instance(result_log: Optional[Sequence[Any]] = None, *, config: Optional[EngineConfig] = None) -> ExecutionInstance:
    """Create an ExecutionInstance over `result_log` (empty when omitted)."""
    return ExecutionInstance(result_log if result_log is not None else [], config=config)
