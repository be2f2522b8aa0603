#!/usr/bin/env python3
"""
01_manual_round_trips.py - Drive a workflow by hand, one attempt at a time

Demonstrates:
- Wrapping task bodies on an ExecutionInstance
- Suspension at the first call with no logged result
- Executing the pending task out-of-band and appending its result
- Replaying already-resolved calls without re-running their bodies

No external services are needed.
"""

from replaycore import ResultLog, configure_logging, create_instance


def add(a: int, b: int) -> int:
    print(f"  (executing add({a}, {b}))")
    return a + b


def main():
    configure_logging("INFO")
    log = ResultLog()

    attempt = 0
    while True:
        attempt += 1
        instance = create_instance(log)
        wrapped_add = instance.wrap_task("add", add)

        async def workflow():
            x = await wrapped_add(5, 3)
            y = await wrapped_add(x, 3)
            return y

        outcome = instance.run_sync(workflow)
        print(f"Attempt {attempt}: {outcome.status.value} (log={log.values()})")

        if outcome.is_completed:
            print(f"\nResult: {outcome.value}")
            break
        if outcome.is_failed:
            print(f"\nFailed: {outcome.error}")
            break

        pending = outcome.suspension
        body = instance.body_for(pending.task_name)
        log.record(pending, body(*pending.args, **pending.kwargs))


if __name__ == "__main__":
    main()
