# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Shared fixtures: a manual clock and scripted provider doubles."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from mail_dispatch.models import Request


class ManualClock:
    """Clock whose time only moves when told to; sleeps advance it."""

    def __init__(self, start: float = 1000.0):
        self.t = start
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.t += seconds


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def make_provider():
    """Build a provider double; ``side_effect`` scripts send() like AsyncMock."""

    def factory(name, side_effect=None):
        provider = MagicMock()
        provider.name = name
        provider.send = AsyncMock(side_effect=side_effect)
        return provider

    return factory


@pytest.fixture
def make_request():
    def factory(request_id="email-001", to="a@example.com", **kwargs):
        return Request(id=request_id, to=to, **kwargs)

    return factory
