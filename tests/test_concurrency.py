from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

import booksitemap.concurrency as concurrency_module
from booksitemap.concurrency import run_indexed_tasks
from booksitemap.errors import ConcurrencyError


def _sleepy(value: int, delay: float):
    def task() -> int:
        time.sleep(delay)
        return value

    return task


def test_results_follow_task_order_not_completion_order() -> None:
    tasks = [_sleepy(i, delay) for i, delay in enumerate([0.05, 0.0, 0.03, 0.01])]
    assert run_indexed_tasks(tasks, max_workers=4) == [0, 1, 2, 3]


def test_runs_inline_without_pool() -> None:
    caller = threading.current_thread()
    threads: list[threading.Thread] = []

    def task() -> None:
        threads.append(threading.current_thread())

    run_indexed_tasks([task, task], max_workers=1)
    assert threads == [caller, caller]


def test_empty_task_list() -> None:
    assert run_indexed_tasks([], max_workers=4) == []


def test_lowest_index_failure_wins_after_all_tasks_finish() -> None:
    finished: list[int] = []

    def fail(index: int, delay: float):
        def task() -> None:
            time.sleep(delay)
            finished.append(index)
            raise ValueError(f"task {index}")

        return task

    tasks = [_sleepy(0, 0.0), fail(1, 0.05), fail(2, 0.0)]
    with pytest.raises(ValueError, match="task 1"):
        run_indexed_tasks(tasks, max_workers=3)
    assert sorted(finished) == [1, 2]


def test_queued_tasks_are_cancelled_after_a_failure() -> None:
    started: list[int] = []
    gate = threading.Event()

    def first() -> None:
        started.append(0)
        raise RuntimeError("first")

    def later(index: int):
        def task() -> int:
            started.append(index)
            gate.wait(1)
            return index

        return task

    with ThreadPoolExecutor(max_workers=1) as executor:
        with pytest.raises(RuntimeError, match="first"):
            run_indexed_tasks(
                [first, later(1), later(2)], max_workers=1, executor=executor
            )
    gate.set()
    assert started[0] == 0
    assert 2 not in started


def test_cancelled_futures_surface_as_concurrency_error() -> None:
    executor = ThreadPoolExecutor(max_workers=1)
    blocker = threading.Event()
    executor.submit(blocker.wait, 1)

    def cancel_pending() -> None:
        executor.shutdown(wait=False, cancel_futures=True)

    timer = threading.Timer(0.05, cancel_pending)
    timer.start()
    try:
        with pytest.raises(ConcurrencyError):
            run_indexed_tasks([lambda: 1], max_workers=1, executor=executor)
    finally:
        blocker.set()
        timer.cancel()


def test_interrupt_while_waiting_sets_cancelled_and_propagates(monkeypatch) -> None:
    real_wait = concurrency_module.wait
    calls: list[int] = []

    def interrupted_wait(*args, **kwargs):
        calls.append(1)
        if len(calls) == 1:
            raise KeyboardInterrupt
        return real_wait(*args, **kwargs)

    monkeypatch.setattr(concurrency_module, "wait", interrupted_wait)
    cancelled = threading.Event()
    finished: list[int] = []

    def task(index: int):
        def run() -> int:
            time.sleep(0.02)
            finished.append(index)
            return index

        return run

    with ThreadPoolExecutor(max_workers=1) as executor:
        with pytest.raises(KeyboardInterrupt):
            run_indexed_tasks(
                [task(0), task(1), task(2)],
                max_workers=1,
                executor=executor,
                cancelled=cancelled,
            )
        # running work was awaited, queued work never started
        assert len(calls) == 2
        assert 2 not in finished
    assert cancelled.is_set()
