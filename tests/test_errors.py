"""Tests for the structured error hierarchy."""

from datetime import UTC, datetime

import pytest

from virtual_time.errors import (
    ErrorCategory,
    ErrorContext,
    InvalidDurationError,
    InvalidInstantError,
    OutOfOrderTimeError,
    ValidationError,
    VirtualTimeError,
    WaitTimeoutError,
)


class TestErrorCategory:
    """Test ErrorCategory enum."""

    def test_values_are_strings(self):
        assert ErrorCategory.VALIDATION == "VALIDATION"
        assert ErrorCategory.ORDERING.value == "ORDERING"
        assert {c.value for c in ErrorCategory} == {"VALIDATION", "ORDERING", "TIMEOUT", "INTERNAL"}


class TestErrorContext:
    """Test ErrorContext.to_dict()."""

    def test_empty_context(self):
        assert ErrorContext().to_dict() == {}

    def test_fields_and_metadata(self):
        ctx = ErrorContext(clock_time="2000-01-01T00:00:00+00:00", timer_id=4, metadata={"test": "x"})
        assert ctx.to_dict() == {
            "clock_time": "2000-01-01T00:00:00+00:00",
            "timer_id": 4,
            "test": "x",
        }


class TestVirtualTimeError:
    """Test the base error."""

    def test_default_category_is_internal(self):
        err = VirtualTimeError("broken")
        assert err.message == "broken"
        assert str(err) == "broken"
        assert err.category == ErrorCategory.INTERNAL

    def test_category_override(self):
        err = VirtualTimeError("x", category=ErrorCategory.TIMEOUT)
        assert err.category == ErrorCategory.TIMEOUT

    def test_with_context_is_fluent(self):
        err = VirtualTimeError("x").with_context(timer_id=7, scenario="catch-up")
        assert err.context.timer_id == 7
        assert err.context.metadata == {"scenario": "catch-up"}

    def test_to_dict(self):
        err = VirtualTimeError("x").with_context(timer_id=1)
        assert err.to_dict() == {
            "error_type": "VirtualTimeError",
            "message": "x",
            "category": "INTERNAL",
            "context": {"timer_id": 1},
        }

    def test_repr(self):
        assert repr(VirtualTimeError("x")) == "VirtualTimeError('x', category=INTERNAL)"


class TestValidationErrors:
    """Test validation error subclasses."""

    def test_invalid_duration(self):
        err = InvalidDurationError("due_time", -5)
        assert isinstance(err, ValidationError)
        assert isinstance(err, ValueError)
        assert err.category == ErrorCategory.VALIDATION
        assert err.field == "due_time"
        assert err.value == -5
        assert "due_time" in str(err)

        data = err.to_dict()
        assert data["field"] == "due_time"
        assert data["value"] == "-5"
        assert "MAX_SUPPORTED_DURATION" in data["constraint"]

    def test_invalid_duration_custom_constraint(self):
        err = InvalidDurationError("delta", -1, constraint="duration >= 0")
        assert err.constraint == "duration >= 0"

    def test_invalid_instant(self):
        naive = datetime(2024, 1, 1)
        err = InvalidInstantError("start", naive)
        assert err.field == "start"
        assert err.value is naive
        assert err.constraint == "tzinfo is not None"


class TestOrderingAndTimeout:
    def test_out_of_order(self):
        current = datetime(2024, 1, 2, tzinfo=UTC)
        requested = datetime(2024, 1, 1, tzinfo=UTC)
        err = OutOfOrderTimeError(current, requested)
        assert isinstance(err, ValueError)
        assert err.category == ErrorCategory.ORDERING
        assert err.current == current
        assert err.requested == requested
        assert "Cannot go back in time" in err.message

    def test_wait_timeout_is_timeout_error(self):
        err = WaitTimeoutError("too slow")
        assert isinstance(err, TimeoutError)
        assert err.category == ErrorCategory.TIMEOUT

    def test_catchable_as_base(self):
        with pytest.raises(VirtualTimeError):
            raise InvalidDurationError("period", -2)
