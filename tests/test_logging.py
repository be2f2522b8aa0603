from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from replaycore import configure_logging, create_instance


def test_attempt_events_are_logged_with_ordinals() -> None:
    instance = create_instance([8])
    add = instance.wrap_task("add", lambda a, b: a + b)

    async def workflow() -> int:
        x = await add(5, 3)
        return await add(x, 3)

    with capture_logs() as logs:
        instance.run_sync(workflow)

    started = [e for e in logs if e["event"] == "attempt_started"]
    assert started and started[0]["ordinals_used"] == 0

    suspended = [e for e in logs if e["event"] == "attempt_suspended"]
    assert len(suspended) == 1
    assert suspended[0]["task"] == "add"
    assert suspended[0]["ordinal"] == 1
    assert suspended[0]["ordinals_used"] == 2


def test_failed_attempts_are_logged_at_warning() -> None:
    async def workflow() -> None:
        raise KeyError("missing")

    with capture_logs() as logs:
        create_instance().run_sync(workflow)

    failed = [e for e in logs if e["event"] == "attempt_failed"]
    assert failed and failed[0]["log_level"] == "warning"


def test_configure_logging_rejects_unknown_levels() -> None:
    with pytest.raises(ValueError):
        configure_logging("LOUD")
