"""
Periodic background tasks bound to the FastAPI application lifecycle.

``start_periodic_task`` creates an asyncio task that calls a coroutine
function every ``interval_seconds`` and registers it on ``app.state``;
``stop_periodic_tasks`` cancels all registered tasks at shutdown.  An
exception in one run is logged and the loop keeps going.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from fastapi import FastAPI

_TASKS_STATE_KEY = "periodic_tasks"


def start_periodic_task(
    app: FastAPI,
    *,
    name: str,
    interval_seconds: float,
    func: Callable[[], Awaitable[object]],
    logger: logging.Logger,
    wait_first: bool = False,
) -> "asyncio.Task[None]":
    tasks: Optional[List[asyncio.Task]] = getattr(app.state, _TASKS_STATE_KEY, None)
    if tasks is None:
        tasks = []
        setattr(app.state, _TASKS_STATE_KEY, tasks)

    async def _runner() -> None:
        if wait_first:
            await asyncio.sleep(interval_seconds)
        while True:
            try:
                await func()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Periodic task %s failed", name)
            await asyncio.sleep(interval_seconds)

    task = asyncio.create_task(_runner(), name=name)
    tasks.append(task)
    logger.info("Started periodic task %s (every %ss)", name, interval_seconds)
    return task


async def stop_periodic_tasks(app: FastAPI, *, logger: logging.Logger) -> None:
    tasks: Optional[List[asyncio.Task]] = getattr(app.state, _TASKS_STATE_KEY, None)
    if not tasks:
        return
    for task in tasks:
        task.cancel()
    try:
        await asyncio.gather(*tasks, return_exceptions=True)
    finally:
        setattr(app.state, _TASKS_STATE_KEY, [])
        logger.info("Periodic tasks stopped")
