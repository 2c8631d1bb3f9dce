# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
import logging

from mail_dispatch.logger import configure_logging, get_logger
from mail_dispatch.prometheus import DispatchMetrics


def test_get_logger_reuses_existing_logger():
    """Test get_logger returns the same logger instance."""
    logger = get_logger("TestLogger")
    handler_count = len(logger.handlers)

    same_logger = get_logger("TestLogger")
    assert logger is same_logger
    assert len(same_logger.handlers) == handler_count


def test_component_loggers_share_namespace():
    """Test component loggers are children of the namespace logger."""
    assert get_logger().name == "mail_dispatch"
    assert get_logger("DispatchQueue").name == "mail_dispatch.DispatchQueue"
    assert get_logger("DispatchQueue").parent is get_logger()


def test_configure_logging_sets_namespace_level():
    """Test configure_logging sets the level and keeps a single root handler."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], get_logger().level
    try:
        configure_logging("debug")
        configure_logging("info")
        assert get_logger().level == logging.INFO
        assert get_logger("FailoverRouter").getEffectiveLevel() == logging.INFO
        assert len(root.handlers) == 1
        assert "%(name)s" in root.handlers[0].formatter._fmt

        configure_logging("LOUD")
        assert get_logger().level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        get_logger().setLevel(saved_level)


def test_dispatch_metrics_counters_and_gauge():
    """Test counters and the pending gauge are exported."""
    metrics = DispatchMetrics()

    metrics.inc_sent("A")
    metrics.inc_provider_error("")
    metrics.inc_failed()
    metrics.inc_already_sent()
    metrics.inc_rate_limited()
    metrics.set_pending(3)

    output = metrics.generate_latest()
    assert b'mdp_sent_total{provider="A"} 1.0' in output
    assert b'mdp_provider_errors_total{provider="default"} 1.0' in output
    assert b"mdp_pending_requests 3.0" in output


def test_separate_registries_do_not_collide():
    """Test two collectors on separate registries coexist."""
    first, second = DispatchMetrics(), DispatchMetrics()
    first.inc_failed()
    assert b"mdp_failed_total 0.0" in second.generate_latest()
