"""Tests for structlog configuration and the library's debug events."""

import logging
from datetime import timedelta

import pytest
import structlog
from structlog.testing import capture_logs

from virtual_time import INFINITE, VirtualClock
from virtual_time.logging import (
    LOGGER_NAME,
    LogContext,
    bind_context,
    build_processors,
    clear_context,
    configure_logging,
    debug_enabled,
    get_logger,
)


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    logging.getLogger(LOGGER_NAME).setLevel(logging.NOTSET)


class TestProcessors:
    """Test build_processors()."""

    def test_json_chain_ends_with_json_renderer(self):
        processors = build_processors(json_format=True)
        assert isinstance(processors[0], structlog.processors.TimeStamper)
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert structlog.stdlib.filter_by_level in processors

    def test_console_chain(self):
        processors = build_processors(json_format=False, add_timestamp=False)
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
        assert not any(isinstance(p, structlog.processors.TimeStamper) for p in processors)


class TestConfigureLogging:
    def test_sets_package_level(self):
        configure_logging(level="DEBUG", json_format=True)
        assert logging.getLogger(LOGGER_NAME).level == logging.DEBUG

    def test_get_logger_wraps_named_stdlib_logger(self):
        logger = get_logger("virtual_time.tests")
        assert logger.bind()._logger is logging.getLogger("virtual_time.tests")


@pytest.fixture
def debug_level():
    logging.getLogger(LOGGER_NAME).setLevel(logging.DEBUG)


class TestDebugGate:
    """Test that debug events cost nothing while DEBUG is off."""

    def test_debug_enabled_follows_stdlib_level(self):
        logging.getLogger(LOGGER_NAME).setLevel(logging.INFO)
        assert not debug_enabled("virtual_time.engine")
        logging.getLogger(LOGGER_NAME).setLevel(logging.DEBUG)
        assert debug_enabled("virtual_time.engine")

    def test_no_processor_runs_while_debug_is_off(self):
        """A busy periodic timer builds no events unless DEBUG is enabled."""
        processed = []

        def count(logger, method_name, event_dict):
            processed.append(event_dict["event"])
            raise structlog.DropEvent

        structlog.configure(processors=[count])
        logging.getLogger(LOGGER_NAME).setLevel(logging.INFO)

        clock = VirtualClock()
        timer = clock.create_timer(lambda _: None, None, timedelta(0), timedelta(milliseconds=1))
        clock.advance(timedelta(seconds=1))
        timer.dispose()
        assert processed == []

        logging.getLogger(LOGGER_NAME).setLevel(logging.DEBUG)
        clock.advance(timedelta(milliseconds=1))
        assert processed == ["clock_advanced"]


@pytest.mark.usefixtures("debug_level")
class TestEvents:
    """Test the debug events emitted while timers run."""

    def test_custom_logger_is_captured(self):
        with capture_logs() as logs:
            get_logger("virtual_time.tests").info("hello", answer=42)
        assert logs == [{"event": "hello", "answer": 42, "log_level": "info"}]

    def test_timer_lifecycle_events(self):
        clock = VirtualClock()
        with capture_logs() as logs:
            timer = clock.create_timer(lambda _: None, None, timedelta(0), INFINITE)
            timer.dispose()

        events = [entry["event"] for entry in logs]
        assert events == ["timer_armed", "timer_fired", "timer_removed", "timer_disposed"]

    def test_clock_movement_events(self):
        clock = VirtualClock()
        with capture_logs() as logs:
            clock.advance(timedelta(seconds=1))
            clock.set_now(clock.start + timedelta(seconds=2))
            clock.adjust_time(clock.start + timedelta(seconds=3))

        events = [entry["event"] for entry in logs]
        assert events == ["clock_advanced", "clock_set", "clock_adjusted"]


class TestContext:
    def test_log_context_binds_and_unbinds(self):
        with LogContext(test_name="catch_up"):
            assert structlog.contextvars.get_contextvars() == {"test_name": "catch_up"}
        assert structlog.contextvars.get_contextvars() == {}

    def test_clear_context(self):
        bind_context(a=1, b=2)
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}
