"""Unit tests for the bounded background queue."""

import asyncio

import pytest

from serenity.services.background_queue import BackgroundQueue


def test_concurrency_must_be_positive():
    with pytest.raises(ValueError):
        BackgroundQueue(concurrency=0)


async def test_never_exceeds_concurrency():
    queue = BackgroundQueue(concurrency=2)
    active = {"now": 0, "peak": 0}

    async def job():
        active["now"] += 1
        active["peak"] = max(active["peak"], active["now"])
        await asyncio.sleep(0.01)
        active["now"] -= 1

    for _ in range(6):
        queue.push(job)

    assert queue.running == 2
    assert queue.pending == 4

    await queue.join()

    assert active["peak"] == 2
    assert queue.completed == 6
    assert queue.running == 0
    assert queue.pending == 0


async def test_jobs_start_in_push_order():
    queue = BackgroundQueue(concurrency=1)
    order = []

    def make(n):
        async def job():
            order.append(n)
        return job

    for n in range(4):
        queue.push(make(n))
    await queue.join()

    assert order == [0, 1, 2, 3]


async def test_failed_job_is_dropped_and_queue_continues():
    queue = BackgroundQueue(concurrency=1)
    ran = []

    async def bad():
        raise RuntimeError("boom")

    async def good():
        ran.append("good")

    queue.push(bad)
    queue.push(good)
    await queue.join()

    assert ran == ["good"]
    assert queue.failed == 1
    assert queue.completed == 1


async def test_join_waits_for_jobs_pushed_by_jobs():
    queue = BackgroundQueue(concurrency=1)
    ran = []

    async def child():
        ran.append("child")

    async def parent():
        ran.append("parent")
        queue.push(child)

    queue.push(parent)
    await queue.join()

    assert ran == ["parent", "child"]


async def test_join_on_empty_queue_returns():
    await BackgroundQueue().join()
