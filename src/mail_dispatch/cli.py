# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Command-line interface for mail-dispatch.

Usage:
    mail-dispatch demo --count 3 --seed 42
    mail-dispatch demo --duplicate
    mail-dispatch --log-level DEBUG config --config /etc/mail-dispatch/config.ini
"""

from __future__ import annotations

import asyncio
import os
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from .config import load_settings
from .errors import ConfigurationError
from .logger import configure_logging
from .models import StatusEvent
from .providers import demo_providers
from .service import MailDispatchService

console = Console()
err_console = Console(stderr=True)


def run_async(coro):
    """Execute an async coroutine synchronously from CLI context."""
    return asyncio.run(coro)


def print_error(message: str) -> None:
    err_console.print(f"[red]Error:[/red] {message}")


def sample_requests(count: int) -> list[dict[str, Any]]:
    """Demo emails: email-001 to a@example.com, email-002 to b@example.com, ..."""
    requests = []
    for i in range(count):
        letter = chr(ord("a") + i % 26)
        requests.append(
            {
                "id": f"email-{i + 1:03d}",
                "to": f"{letter}@example.com",
                "subject": f"Hello {letter.upper()}",
                "body": f"Test email {letter.upper()}",
            }
        )
    return requests


async def _run_demo(service: MailDispatchService, requests: list[dict[str, Any]]) -> list[dict[str, Any]]:
    def show_event(event: StatusEvent) -> None:
        console.print(f"[dim]Status update:[/dim] {event.to_dict()}")

    service.on_status(show_event)
    results = []
    for payload in requests:
        result = await service.submit(payload)
        results.append({"id": payload["id"], **result})
    await service.close()
    return results


@click.group()
@click.version_option(package_name="mail-dispatch")
@click.option(
    "--log-level",
    default=lambda: os.getenv("MDP_LOG_LEVEL", "WARNING"),
    show_default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (env MDP_LOG_LEVEL).",
)
def main(log_level: str) -> None:
    """Resilient mail dispatch with failover, retry and rate limiting."""
    configure_logging(log_level)


@main.command()
@click.option("--count", "-n", default=3, show_default=True, type=click.IntRange(min=1), help="Emails to send.")
@click.option("--seed", type=int, default=None, help="Random seed for the mock providers.")
@click.option("--latency", type=float, default=0.1, show_default=True, help="Mock provider latency in seconds.")
@click.option("--duplicate", is_flag=True, help="Resubmit the first email at the end.")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None, help="INI config file.")
def demo(count: int, seed: int | None, latency: float, duplicate: bool, config_path: str | None) -> None:
    """Send sample emails through two unreliable mock providers."""
    try:
        config = load_settings(config_path)
    except ConfigurationError as exc:
        print_error(str(exc))
        raise SystemExit(1)

    providers = demo_providers(seed=seed, latency=latency)
    service = MailDispatchService(providers, config=config)
    requests = sample_requests(count)
    if duplicate:
        requests.append(requests[0])

    results = run_async(_run_demo(service, requests))

    table = Table(title="Dispatch results")
    table.add_column("Email", style="cyan")
    table.add_column("Status")
    table.add_column("Provider")
    table.add_column("Error")
    colors = {"sent": "green", "already_sent": "yellow", "failed": "red"}
    for row in results:
        color = colors.get(row["status"], "white")
        table.add_row(
            row["id"],
            f"[{color}]{row['status']}[/{color}]",
            row.get("provider", "-"),
            row.get("error", "-"),
        )
    console.print(table)

    breakers = Table(title="Providers")
    breakers.add_column("Provider", style="cyan")
    breakers.add_column("Circuit")
    breakers.add_column("Failures", justify="right")
    breakers.add_column("Calls", justify="right")
    for status, provider in zip(service.provider_status(), providers):
        breakers.add_row(
            status["provider"],
            status["state"],
            str(status["consecutive_failures"]),
            str(provider.calls),
        )
    console.print(breakers)


@main.command("config")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None, help="INI config file.")
def show_config(config_path: str | None) -> None:
    """Print the effective dispatch configuration."""
    try:
        config = load_settings(config_path)
    except ConfigurationError as exc:
        print_error(str(exc))
        raise SystemExit(1)

    table = Table(title="Dispatch configuration")
    table.add_column("Section", style="cyan")
    table.add_column("Key")
    table.add_column("Value", justify="right")
    for section, values in config.as_dict().items():
        for key, value in values.items():
            table.add_row(section, key, str(value))
    console.print(table)


if __name__ == "__main__":
    main()
