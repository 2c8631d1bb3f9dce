# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""In-memory record of delivered request identities.

The set only grows, lives for the process lifetime and is not persisted.
"""

from __future__ import annotations


class Deduplicator:
    """Membership set of request ids whose send succeeded."""

    def __init__(self) -> None:
        self._delivered: set[str] = set()

    def already_delivered(self, request_id: str) -> bool:
        return request_id in self._delivered

    def mark_delivered(self, request_id: str) -> None:
        self._delivered.add(request_id)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._delivered

    def __len__(self) -> int:
        return len(self._delivered)


__all__ = ["Deduplicator"]
