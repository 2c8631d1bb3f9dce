# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Publish/subscribe channel for terminal dispatch outcomes.

Observers receive one ``StatusEvent`` per dispatch that reaches a terminal
sent/failed outcome. Deduplicated requests produce no event. Observers may
be plain callables or coroutine functions; a failing observer is logged and
does not affect the others or the dispatch itself.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Union

from .logger import get_logger
from .models import StatusEvent

StatusObserver = Callable[[StatusEvent], Union[None, Awaitable[None]]]

logger = get_logger("StatusPublisher")


class StatusPublisher:
    """Fan-out of status events to any number of observers."""

    def __init__(self) -> None:
        self._observers: list[StatusObserver] = []

    def subscribe(self, observer: StatusObserver) -> Callable[[], None]:
        """Register ``observer`` and return a callable that unsubscribes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    async def publish(self, event: StatusEvent) -> None:
        for observer in list(self._observers):
            try:
                result = observer(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "Status observer %r failed for request %s", observer, event.request_id
                )


__all__ = ["StatusObserver", "StatusPublisher"]
