# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Request, outcome and status event models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Request(BaseModel):
    """A delivery request submitted to the dispatch queue.

    Immutable once built. The dispatch core only looks at ``id``; the other
    fields are handed to providers untouched.

    Attributes:
        id: Unique request identity, used for deduplication.
        to: Recipient address(es).
        subject: Email subject.
        body: Email body content.
        from_addr: Sender address, if the provider needs one.
        headers: Additional email headers, as (name, value) pairs. A mapping
            is accepted and frozen in insertion order.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    id: Annotated[
        str,
        Field(min_length=1, description="Unique request identifier")
    ]
    to: Annotated[
        tuple[str, ...],
        Field(min_length=1, description="Recipient address(es)")
    ]
    subject: Annotated[
        str,
        Field(default="", description="Email subject")
    ]
    body: Annotated[
        str,
        Field(default="", description="Email body content")
    ]
    from_addr: Annotated[
        str | None,
        Field(default=None, alias="from", description="Sender email address")
    ]
    headers: Annotated[
        tuple[tuple[str, str], ...] | None,
        Field(default=None, description="Additional email headers as (name, value) pairs")
    ]

    @field_validator("to", mode="before")
    @classmethod
    def normalize_recipients(cls, v: list[str] | tuple[str, ...] | str) -> tuple[str, ...]:
        """Convert string or list recipients to a tuple."""
        if isinstance(v, str):
            return tuple(addr.strip() for addr in v.split(",") if addr.strip())
        if isinstance(v, list):
            return tuple(v)
        return v

    @field_validator("headers", mode="before")
    @classmethod
    def freeze_headers(cls, v: Any) -> Any:
        if isinstance(v, Mapping):
            return tuple(v.items())
        return v


class OutcomeStatus(str, Enum):
    """Terminal result of a dispatch."""

    ALREADY_SENT = "already_sent"
    SENT = "sent"
    FAILED = "failed"


@dataclass(frozen=True)
class Outcome:
    """Result of routing one request through the failover router."""

    status: OutcomeStatus
    provider: str | None = None
    error: str | None = None

    @classmethod
    def already_delivered(cls) -> Outcome:
        return cls(OutcomeStatus.ALREADY_SENT)

    @classmethod
    def sent(cls, provider: str) -> Outcome:
        return cls(OutcomeStatus.SENT, provider=provider)

    @classmethod
    def failed(cls, reason: str) -> Outcome:
        return cls(OutcomeStatus.FAILED, error=reason)

    def to_dict(self) -> dict[str, Any]:
        """Caller-facing mapping; absent provider/error keys are omitted."""
        result: dict[str, Any] = {"status": self.status.value}
        if self.provider is not None:
            result["provider"] = self.provider
        if self.error is not None:
            result["error"] = self.error
        return result


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class StatusEvent:
    """Notification published once per terminal, non-deduplicated dispatch."""

    request_id: str
    status: OutcomeStatus
    provider: str | None = None
    error: str | None = None
    timestamp: str = field(default_factory=_utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "request_id": self.request_id,
            "status": self.status.value,
            "timestamp": self.timestamp,
        }
        if self.provider is not None:
            payload["provider"] = self.provider
        if self.error is not None:
            payload["error"] = self.error
        return payload


__all__ = ["Outcome", "OutcomeStatus", "Request", "StatusEvent"]
