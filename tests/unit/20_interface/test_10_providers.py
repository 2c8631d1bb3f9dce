# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for the bundled providers."""

import random
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mail_dispatch.providers import (
    MockProvider,
    MockProviderError,
    Provider,
    SmtpProvider,
    demo_providers,
)


class TestMockProvider:

    @pytest.mark.asyncio
    async def test_always_fails(self, make_request):
        """Test a failure rate of one always raises."""
        provider = MockProvider("A", failure_rate=1.0, latency=0)
        with pytest.raises(MockProviderError, match="A failed"):
            await provider.send(make_request())
        assert provider.calls == 1
        assert provider.delivered == []

    @pytest.mark.asyncio
    async def test_never_fails(self, make_request):
        """Test a failure rate of zero always delivers."""
        provider = MockProvider("A", failure_rate=0.0, latency=0)
        await provider.send(make_request("r1"))
        assert provider.delivered == ["r1"]

    @pytest.mark.asyncio
    async def test_seeded_rng_is_reproducible(self, make_request):
        """Test a seeded rng gives the same outcomes."""
        async def run():
            provider = MockProvider("A", failure_rate=0.5, latency=0, rng=random.Random(3))
            outcomes = []
            for i in range(20):
                try:
                    await provider.send(make_request(f"r{i}"))
                    outcomes.append(True)
                except MockProviderError:
                    outcomes.append(False)
            return outcomes

        assert await run() == await run()

    def test_invalid_failure_rate(self):
        """Test a failure rate above one is rejected."""
        with pytest.raises(ValueError):
            MockProvider("A", failure_rate=1.5)

    def test_demo_providers(self):
        """Test the demo provider pair and their failure rates."""
        a, b = demo_providers(seed=1)
        assert (a.name, a.failure_rate) == ("MockProviderA", 0.3)
        assert (b.name, b.failure_rate) == ("MockProviderB", 0.2)
        assert isinstance(a, Provider)


class TestSmtpProvider:

    def test_tls_defaults_from_port(self):
        """Test implicit TLS defaults on for port 465 only."""
        assert SmtpProvider("s", "smtp.example.com", 465).use_tls is True
        assert SmtpProvider("s", "smtp.example.com", 587).use_tls is False
        assert SmtpProvider("s", "smtp.example.com", 587, use_tls=True).use_tls is True

    def test_build_message(self, make_request):
        """Test the EmailMessage carries addresses, subject and headers."""
        provider = SmtpProvider("s", "smtp.example.com", default_from="noreply@example.com")
        request = make_request(
            "r1",
            to="a@example.com, b@example.com",
            subject="Hello",
            body="Body text",
            headers={"X-Campaign": "spring"},
        )

        msg = provider.build_message(request)

        assert msg["From"] == "noreply@example.com"
        assert msg["To"] == "a@example.com, b@example.com"
        assert msg["Subject"] == "Hello"
        assert msg["Message-ID"] == "<r1@smtp.example.com>"
        assert msg["X-Campaign"] == "spring"
        assert msg.get_content().strip() == "Body text"

    def test_request_sender_wins(self, make_request):
        """Test the request sender overrides default_from."""
        provider = SmtpProvider("s", "smtp.example.com", default_from="noreply@example.com")
        msg = provider.build_message(make_request(from_addr="me@example.com"))
        assert msg["From"] == "me@example.com"

    @pytest.mark.asyncio
    async def test_send_logs_in_and_sends(self, make_request):
        """Test send logs in and sends through aiosmtplib."""
        smtp = MagicMock()
        smtp.__aenter__ = AsyncMock(return_value=smtp)
        smtp.__aexit__ = AsyncMock(return_value=None)
        smtp.login = AsyncMock()
        smtp.send_message = AsyncMock()

        with patch("mail_dispatch.providers.aiosmtplib.SMTP", return_value=smtp) as smtp_cls:
            provider = SmtpProvider("s", "smtp.example.com", 465, user="u", password="p")
            await provider.send(make_request("r1"))

        smtp_cls.assert_called_once_with(
            hostname="smtp.example.com", port=465, use_tls=True, start_tls=False, timeout=10.0
        )
        smtp.login.assert_awaited_once_with("u", "p")
        smtp.send_message.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_send_failure_propagates(self, make_request):
        """Test SMTP connection errors propagate."""
        smtp = MagicMock()
        smtp.__aenter__ = AsyncMock(side_effect=ConnectionRefusedError("refused"))
        smtp.__aexit__ = AsyncMock(return_value=None)

        with patch("mail_dispatch.providers.aiosmtplib.SMTP", return_value=smtp):
            provider = SmtpProvider("s", "smtp.example.com", 25)
            with pytest.raises(ConnectionRefusedError):
                await provider.send(make_request())
