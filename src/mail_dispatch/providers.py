# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Delivery backends.

A provider is anything with a ``name`` and an async ``send(request)`` that
returns on success and raises on failure. The dispatch core treats every
exception the same way, whatever its cause.

Two implementations ship with the package:

- ``SmtpProvider``: delivers through an SMTP server with aiosmtplib.
- ``MockProvider``: fails at random with a configurable rate, for demos
  and load experiments.
"""

from __future__ import annotations

import asyncio
import random
from email.message import EmailMessage
from typing import Protocol, runtime_checkable

import aiosmtplib

from .models import Request


@runtime_checkable
class Provider(Protocol):
    """Delivery backend capability consumed by the failover router."""

    name: str

    async def send(self, request: Request) -> None:
        """Deliver ``request``, raising any exception on failure."""
        ...


class SmtpProvider:
    """Provider delivering requests as plain-text email over SMTP.

    TLS behavior based on port and use_tls flag:
    - Port 465 with use_tls=True: Direct TLS (implicit TLS)
    - Other ports with use_tls=True: STARTTLS
    - use_tls=False: Plain SMTP (no encryption)

    Attributes:
        name: Provider name used in outcomes and status events.
        host: SMTP server hostname.
        port: SMTP server port.
        default_from: Sender used when the request carries none.
    """

    def __init__(
        self,
        name: str,
        host: str,
        port: int = 587,
        *,
        user: str | None = None,
        password: str | None = None,
        use_tls: bool | None = None,
        default_from: str | None = None,
        timeout: float = 30.0,
    ):
        self.name = name
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_tls = port == 465 if use_tls is None else use_tls
        self.default_from = default_from or user
        self.timeout = timeout

    def build_message(self, request: Request) -> EmailMessage:
        """Build the EmailMessage sent for ``request``."""
        msg = EmailMessage()
        sender = request.from_addr or self.default_from
        if sender:
            msg["From"] = sender
        msg["To"] = ", ".join(request.to)
        msg["Subject"] = request.subject
        msg["Message-ID"] = f"<{request.id}@{self.host}>"
        for key, value in request.headers or ():
            msg[key] = value
        msg.set_content(request.body)
        return msg

    def _client(self) -> aiosmtplib.SMTP:
        if self.use_tls and self.port == 465:
            return aiosmtplib.SMTP(hostname=self.host, port=self.port, use_tls=True, start_tls=False, timeout=10.0)
        if self.use_tls:
            return aiosmtplib.SMTP(hostname=self.host, port=self.port, use_tls=False, start_tls=True, timeout=10.0)
        return aiosmtplib.SMTP(hostname=self.host, port=self.port, use_tls=False, start_tls=False, timeout=10.0)

    async def send(self, request: Request) -> None:
        msg = self.build_message(request)
        smtp = self._client()

        async def _deliver() -> None:
            async with smtp:
                if self.user and self.password:
                    await smtp.login(self.user, self.password)
                await smtp.send_message(msg)

        await asyncio.wait_for(_deliver(), timeout=self.timeout)

    def __repr__(self) -> str:
        return f"SmtpProvider(name={self.name!r}, host={self.host!r}, port={self.port})"


class MockProviderError(RuntimeError):
    """Simulated delivery failure raised by MockProvider."""


class MockProvider:
    """Provider that fails with probability ``failure_rate``.

    Successful sends sleep ``latency`` seconds to simulate network time.

    Attributes:
        name: Provider name.
        failure_rate: Probability in [0, 1] that a send raises.
        latency: Simulated send duration in seconds.
        calls: Number of send attempts received.
        delivered: Ids of requests this provider accepted.
    """

    def __init__(
        self,
        name: str,
        failure_rate: float = 0.0,
        latency: float = 0.1,
        *,
        rng: random.Random | None = None,
    ):
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError("failure_rate must be between 0 and 1")
        self.name = name
        self.failure_rate = failure_rate
        self.latency = latency
        self._rng = rng or random.Random()
        self.calls = 0
        self.delivered: list[str] = []

    async def send(self, request: Request) -> None:
        self.calls += 1
        if self._rng.random() < self.failure_rate:
            raise MockProviderError(f"{self.name} failed")
        if self.latency > 0:
            await asyncio.sleep(self.latency)
        self.delivered.append(request.id)

    def __repr__(self) -> str:
        return f"MockProvider(name={self.name!r}, failure_rate={self.failure_rate})"


def demo_providers(seed: int | None = None, latency: float = 0.1) -> list[MockProvider]:
    """The two mock providers of the demo scenario (30% and 20% failure)."""
    rng = random.Random(seed)
    return [
        MockProvider("MockProviderA", failure_rate=0.3, latency=latency, rng=rng),
        MockProvider("MockProviderB", failure_rate=0.2, latency=latency, rng=rng),
    ]


__all__ = [
    "MockProvider",
    "MockProviderError",
    "Provider",
    "SmtpProvider",
    "demo_providers",
]
