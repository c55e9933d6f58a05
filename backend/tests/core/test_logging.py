"""
Tests for structured logging configuration.
"""

import logging

import structlog
from structlog.contextvars import get_contextvars

from apps.core.logging import (
    _rename_correlation_id,
    bind_contextvars,
    clear_contextvars,
    configure_logging,
    get_logger,
)


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_logging_json_format(self):
        """Should install a single stdout handler at the requested level."""
        configure_logging(json_format=True, log_level="INFO")

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.INFO
        assert structlog.is_configured()

    def test_configure_logging_console_format(self):
        configure_logging(json_format=False, log_level="DEBUG")

        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        configure_logging(json_format=False, log_level="chatty")

        assert logging.getLogger().level == logging.INFO


class TestGetLogger:
    def test_get_logger_returns_bound_logger(self):
        logger = get_logger("test.module")
        assert logger is not None

    def test_get_logger_with_none_name(self):
        logger = get_logger(None)
        assert logger is not None


class TestContextVars:
    """Tests for context variable binding."""

    def setup_method(self):
        clear_contextvars()

    def teardown_method(self):
        clear_contextvars()

    def test_bind_contextvars_with_dotted_keys(self):
        """Dotted keys are bound via dict unpacking."""
        bind_contextvars(trace_id="abc123", **{"gym.id": "gym_1", "usr.id": "7"})

        ctx = get_contextvars()
        assert ctx.get("trace_id") == "abc123"
        assert ctx.get("gym.id") == "gym_1"
        assert ctx.get("usr.id") == "7"

    def test_clear_contextvars_removes_context(self):
        bind_contextvars(trace_id="abc123")
        clear_contextvars()

        assert get_contextvars().get("trace_id") is None


class TestRenameCorrelationId:
    def test_renames_to_trace_id(self):
        event = _rename_correlation_id(None, "info", {"event": "x", "correlation_id": 123})
        assert event == {"event": "x", "trace_id": "123"}

    def test_leaves_other_events_alone(self):
        event = _rename_correlation_id(None, "info", {"event": "x", "trace_id": "t"})
        assert event == {"event": "x", "trace_id": "t"}


class TestLogOutput:
    """Tests for actual log output."""

    def setup_method(self):
        clear_contextvars()
        configure_logging(json_format=True, log_level="DEBUG")

    def teardown_method(self):
        clear_contextvars()

    def test_event_is_logged(self, caplog):
        logger = get_logger("test.json_output")
        bind_contextvars(**{"gym.id": "gym_1"})

        with caplog.at_level(logging.DEBUG, logger="test.json_output"):
            logger.info("checkout_created", payment_id="pay_1", amount=25000)

        assert len(caplog.records) > 0
        assert "checkout_created" in caplog.text

    def test_log_with_exception(self, caplog):
        logger = get_logger("test.exception")

        with caplog.at_level(logging.DEBUG, logger="test.exception"):
            try:
                raise ValueError("Test error")
            except ValueError:
                logger.exception("error_occurred")

        assert len(caplog.records) > 0
        assert "error_occurred" in caplog.text or "ValueError" in caplog.text
