from __future__ import annotations

import logging
import threading
from concurrent.futures import (
    CancelledError,
    Executor,
    Future,
    ThreadPoolExecutor,
    wait,
    FIRST_EXCEPTION,
)
from contextvars import copy_context
from typing import Any, Callable

from .errors import ConcurrencyError

logger = logging.getLogger(__name__)


def run_indexed_tasks(
    tasks: list[Callable[[], Any]],
    *,
    max_workers: int,
    executor: Executor | None = None,
    cancelled: threading.Event | None = None,
) -> list[Any]:
    """
    Run ``tasks`` on a bounded pool and return their results in task order.

    All tasks are accounted for before returning or raising. When a task
    fails, tasks that have not started yet are cancelled, the running ones are
    awaited and the failure with the lowest index is raised unchanged. A
    cancellation is wrapped once in ``ConcurrencyError``. Anything raised
    while submitting or waiting, ``KeyboardInterrupt`` included, sets
    ``cancelled`` so in-flight work stops, and then propagates.
    """
    if not tasks:
        return []
    if executor is None and max_workers <= 1:
        return [task() for task in tasks]

    if executor is None:
        with ThreadPoolExecutor(max_workers=max_workers) as own_executor:
            return _submit_and_wait(tasks, own_executor, cancelled)
    return _submit_and_wait(tasks, executor, cancelled)


def _submit_and_wait(
    tasks: list[Callable[[], Any]],
    executor: Executor,
    cancelled: threading.Event | None,
) -> list[Any]:
    futures: list[Future] = []
    try:
        for task in tasks:
            futures.append(executor.submit(copy_context().run, task))
        logger.debug("submitted %d tasks", len(futures))
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        if pending:
            for future in pending:
                future.cancel()
            wait(futures)
    except BaseException:
        if cancelled is not None:
            cancelled.set()
        for future in futures:
            future.cancel()
        wait(futures)
        raise

    results: list[Any] = []
    for index, future in enumerate(futures):
        if future.cancelled():
            continue
        error = future.exception()
        if error is not None:
            if isinstance(error, CancelledError):
                raise ConcurrencyError(f"Task {index} was cancelled") from error
            raise error
        results.append(future.result())
    if len(results) != len(futures):
        raise ConcurrencyError(
            f"{len(futures) - len(results)} of {len(futures)} tasks were cancelled"
        )
    return results
