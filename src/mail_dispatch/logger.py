# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Named loggers for the dispatch components.

Every component logs under the ``mail_dispatch`` namespace, one child per
component (``mail_dispatch.FailoverRouter``, ``mail_dispatch.DispatchQueue``),
so embedding applications can tune or silence the whole pipeline through a
single logger. Library code never installs handlers; ``configure_logging``
is called once by the CLI entry point.
"""

import logging

LOGGER_NAMESPACE = "mail_dispatch"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(component: str | None = None) -> logging.Logger:
    """Return the logger of ``component``, or the namespace logger when omitted."""
    if not component:
        return logging.getLogger(LOGGER_NAMESPACE)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{component}")


def configure_logging(level: str | int = "WARNING") -> logging.Logger:
    """Install the console handler and set the dispatch log level.

    Unknown level names fall back to WARNING. Calling it again replaces the
    previous handler instead of stacking a second one.

    Returns:
        The namespace logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(format=LOG_FORMAT, datefmt=DATE_FORMAT, force=True)
    root = get_logger()
    root.setLevel(level)
    return root


__all__ = ["configure_logging", "get_logger"]
