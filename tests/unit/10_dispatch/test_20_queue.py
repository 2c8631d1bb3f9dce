# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for the single-lane DispatchQueue."""

import asyncio
import random
from unittest.mock import AsyncMock, MagicMock

import pytest

from mail_dispatch.errors import QueueClosedError
from mail_dispatch.models import Outcome
from mail_dispatch.prometheus import DispatchMetrics
from mail_dispatch.queue import DispatchQueue


def make_router(dispatch):
    router = MagicMock()
    router.metrics = DispatchMetrics()
    router.dispatch = AsyncMock(side_effect=dispatch)
    return router


@pytest.mark.asyncio
async def test_outcomes_resolve_in_submission_order(make_request):
    """Test futures resolve in submission order."""
    rng = random.Random(7)
    in_flight = 0
    max_in_flight = 0

    async def dispatch(request):
        nonlocal in_flight, max_in_flight
        in_flight += 1
        max_in_flight = max(max_in_flight, in_flight)
        await asyncio.sleep(rng.uniform(0, 0.01))
        in_flight -= 1
        return Outcome.sent(request.id)

    queue = DispatchQueue(make_router(dispatch))
    resolved = []
    futures = [queue.enqueue(make_request(f"r{i}")) for i in range(10)]
    for future in futures:
        future.add_done_callback(lambda f: resolved.append(f.result().provider))

    await asyncio.gather(*futures)

    assert resolved == [f"r{i}" for i in range(10)]
    assert max_in_flight == 1


@pytest.mark.asyncio
async def test_enqueue_mid_drain_does_not_start_second_loop(make_request):
    """Test enqueue during a drain reuses the running task."""
    started = asyncio.Event()
    release = asyncio.Event()
    order = []

    async def dispatch(request):
        order.append(request.id)
        if request.id == "r0":
            started.set()
            await release.wait()
        return Outcome.sent("A")

    router = make_router(dispatch)
    queue = DispatchQueue(router)
    first = queue.enqueue(make_request("r0"))
    await started.wait()
    drain_task = queue._drain_task

    second = queue.enqueue(make_request("r1"))
    assert queue._drain_task is drain_task
    assert queue.pending == 2
    assert not second.done()

    release.set()
    await asyncio.gather(first, second)
    assert order == ["r0", "r1"]
    assert queue.pending == 0


@pytest.mark.asyncio
async def test_dispatch_exception_fails_only_that_request(make_request):
    """Test a raising dispatch fails only its own future."""
    async def dispatch(request):
        if request.id == "bad":
            raise ValueError("contract violation")
        return Outcome.sent("A")

    queue = DispatchQueue(make_router(dispatch))
    bad = queue.enqueue(make_request("bad"))
    good = queue.enqueue(make_request("good"))

    with pytest.raises(ValueError):
        await bad
    assert (await good).provider == "A"


@pytest.mark.asyncio
async def test_new_drain_after_idle(make_request):
    """Test a new drain task starts after the lane went idle."""
    async def dispatch(request):
        return Outcome.sent("A")

    router = make_router(dispatch)
    queue = DispatchQueue(router)
    await queue.enqueue(make_request("r0"))
    await queue.join()
    assert not queue.draining

    assert (await queue.enqueue(make_request("r1"))).provider == "A"
    assert router.dispatch.await_count == 2


@pytest.mark.asyncio
async def test_close_waits_and_refuses(make_request):
    """Test close waits for the lane and refuses new requests."""
    async def dispatch(request):
        await asyncio.sleep(0)
        return Outcome.sent("A")

    queue = DispatchQueue(make_router(dispatch))
    future = queue.enqueue(make_request("r0"))
    await queue.close()

    assert future.done()
    with pytest.raises(QueueClosedError):
        queue.enqueue(make_request("r1"))


@pytest.mark.asyncio
async def test_pending_gauge_tracks_lane(make_request):
    """Test the pending gauge follows the lane length."""
    async def dispatch(request):
        return Outcome.sent("A")

    router = make_router(dispatch)
    queue = DispatchQueue(router)
    queue.enqueue(make_request("r0"))
    queue.enqueue(make_request("r1"))
    assert b"mdp_pending_requests 2.0" in router.metrics.generate_latest()

    await queue.join()
    assert b"mdp_pending_requests 0.0" in router.metrics.generate_latest()


@pytest.mark.asyncio
async def test_cancelled_dispatch_is_not_repeated(make_request):
    """Test a cancelled dispatch is removed and never routed again."""
    calls = []

    async def dispatch(request):
        calls.append(request.id)
        if request.id == "r1" and calls.count("r1") == 1:
            raise asyncio.CancelledError()
        return Outcome.sent("A")

    queue = DispatchQueue(make_router(dispatch))
    first = queue.enqueue(make_request("r1"))

    with pytest.raises(asyncio.CancelledError):
        await first
    await queue.join()
    assert first.cancelled()
    assert queue.pending == 0

    assert (await queue.enqueue(make_request("r2"))).provider == "A"
    assert calls == ["r1", "r2"]


@pytest.mark.asyncio
async def test_entries_behind_cancelled_dispatch_still_drain(make_request):
    """Test entries behind a cancelled dispatch still resolve."""
    async def dispatch(request):
        if request.id == "r1":
            raise asyncio.CancelledError()
        return Outcome.sent("A")

    queue = DispatchQueue(make_router(dispatch))
    first = queue.enqueue(make_request("r1"))
    second = queue.enqueue(make_request("r2"))

    assert (await second).provider == "A"
    assert first.cancelled()
    await queue.close()
    assert queue.pending == 0
