#!/usr/bin/env python3
"""
02_catalog_orchestrator.py - Typed tasks driven by the Orchestrator

Demonstrates:
- Registering tasks with pydantic parameter models in a TaskCatalog
- Concurrent task calls numbered in invocation order
- Orchestrator.execute() looping attempts until the workflow completes
"""

import asyncio

from pydantic import BaseModel

from replaycore import Orchestrator, ResultLog, TaskCatalog, configure_logging

catalog = TaskCatalog()


class FetchParams(BaseModel):
    city: str


class SummaryParams(BaseModel):
    readings: list[float]


@catalog.task("fetch-temperature", name="Fetch temperature", parameters=FetchParams)
async def fetch_temperature(params: FetchParams) -> float:
    await asyncio.sleep(0.01)
    return {"paris": 18.5, "oslo": 7.0}.get(params.city.lower(), 20.0)


@catalog.task("summarize", name="Summarize readings", parameters=SummaryParams)
def summarize(params: SummaryParams) -> str:
    avg = sum(params.readings) / len(params.readings)
    return f"average {avg:.1f}C over {len(params.readings)} cities"


async def workflow(tasks):
    paris = tasks["fetch-temperature"](city="Paris")
    oslo = tasks["fetch-temperature"](city="Oslo")
    readings = await asyncio.gather(paris, oslo)
    return await tasks.summarize(readings=list(readings))


def main():
    configure_logging("DEBUG")
    log = ResultLog()
    outcome = Orchestrator(catalog).execute_sync(workflow, log)
    print(f"\n{outcome.status.value}: {outcome.value}")
    for entry in log.entries():
        print(f"  #{entry.ordinal} {entry.task_name}{entry.kwargs} -> {entry.value!r}")


if __name__ == "__main__":
    main()
