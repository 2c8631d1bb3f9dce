# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exception types raised by the dispatch pipeline.

Only contract violations are raised. Business outcomes (provider failures,
rate-limit rejections, duplicates) are returned as ``Outcome`` values.
"""


class MailDispatchError(RuntimeError):
    """Base class for errors raised by the dispatch pipeline."""

    code = "mail_dispatch_error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.__class__.__doc__)


class ConfigurationError(MailDispatchError):
    """Invalid dispatch configuration."""

    code = "invalid_configuration"


class RetryExhaustedError(MailDispatchError):
    """No delivery attempt is permitted by the retry configuration."""

    code = "retry_exhausted"


class QueueClosedError(MailDispatchError):
    """The dispatch queue no longer accepts requests."""

    code = "queue_closed"


__all__ = [
    "ConfigurationError",
    "MailDispatchError",
    "QueueClosedError",
    "RetryExhaustedError",
]
