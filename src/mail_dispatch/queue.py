# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Single-lane FIFO dispatch queue.

``enqueue`` appends a request and returns a future immediately. One drain
task per queue takes entries from the head, routes each through the
failover router to completion (retry sleeps included) and resolves its
future before moving on, so outcomes resolve in submission order.
Enqueues that arrive while the drain task is running only append; the
running task reaches them in order.
"""

from __future__ import annotations

import asyncio
from collections import deque

from .errors import QueueClosedError
from .logger import get_logger
from .models import Outcome, Request
from .prometheus import DispatchMetrics
from .router import FailoverRouter

logger = get_logger("DispatchQueue")


class DispatchQueue:
    """Serializes dispatches through one router, in submission order.

    Attributes:
        router: The failover router invoked once per request.
    """

    def __init__(self, router: FailoverRouter, *, metrics: DispatchMetrics | None = None):
        self.router = router
        self.metrics = metrics or router.metrics
        self._entries: deque[tuple[Request, asyncio.Future[Outcome]]] = deque()
        self._drain_task: asyncio.Task[None] | None = None
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False

    @property
    def pending(self) -> int:
        """Entries whose outcome is not resolved yet, including the one in flight."""
        return len(self._entries)

    @property
    def draining(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    @property
    def closed(self) -> bool:
        return self._closed

    def enqueue(self, request: Request) -> asyncio.Future[Outcome]:
        """Append ``request`` to the lane and return the future of its outcome.

        Must be called from within the running event loop.

        Raises:
            QueueClosedError: If the queue was closed.
        """
        if self._closed:
            raise QueueClosedError(f"Cannot enqueue {request.id}: dispatch queue is closed")
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Outcome] = loop.create_future()
        self._entries.append((request, future))
        self._idle.clear()
        self.metrics.set_pending(len(self._entries))
        if not self.draining:
            self._drain_task = loop.create_task(self._drain())
        return future

    async def _drain(self) -> None:
        try:
            while self._entries:
                request, future = self._entries[0]
                try:
                    outcome = await self.router.dispatch(request)
                except Exception as exc:
                    logger.exception("Dispatch of request %s raised", request.id)
                    if not future.done():
                        future.set_exception(exc)
                except BaseException:
                    logger.warning("Dispatch of request %s was cancelled", request.id)
                    if not future.done():
                        future.cancel()
                    raise
                else:
                    if not future.done():
                        future.set_result(outcome)
                finally:
                    self._entries.popleft()
                    self.metrics.set_pending(len(self._entries))
        finally:
            if self._entries:
                # The head was resolved and removed; the rest keep their order.
                self._drain_task = asyncio.get_running_loop().create_task(self._drain())
            else:
                self._idle.set()

    async def join(self) -> None:
        """Wait until every enqueued request has been resolved."""
        await self._idle.wait()

    async def close(self) -> None:
        """Refuse new requests and wait for the lane to drain."""
        self._closed = True
        await self.join()


__all__ = ["DispatchQueue"]
