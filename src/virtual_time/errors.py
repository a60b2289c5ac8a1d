"""
Structured error types for virtual-time.

Every failure the clock and its timers report synchronously is a
``VirtualTimeError``. Errors carry a category and a small structured context
so that a test harness (or whatever drives the clock) can log them with the
same shape as any other structured event.

Manifesto:
    - **Typed Error Hierarchy:** One type per rejected operation
    - **State Unchanged:** A raised error means the clock and registry were
      left exactly as they were before the call
    - **Stdlib Compatible:** Validation errors are also ``ValueError`` and the
      wait timeout is also ``TimeoutError``, so ordinary ``except`` clauses work
    - **No Retries:** The scheduler is synchronous and deterministic, retrying
      is a concern for callers

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                     VirtualTimeError                             │
        │            (category, context, to_dict)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ValidationError            OutOfOrderTimeError                  │
        │  (VALIDATION, ValueError)   (ORDERING, ValueError)               │
        │       │                                                          │
        │  InvalidDurationError       WaitTimeoutError                     │
        │  InvalidInstantError        (TIMEOUT, TimeoutError)              │
        └─────────────────────────────────────────────────────────────────┘

Callback failures are deliberately absent: an exception raised by a fired
callback propagates unchanged to the call that triggered the drain
(``advance``, ``set_now``, ``create_timer``, ``change``).

Examples:
    >>> err = InvalidDurationError("due_time", -5)
    >>> err.field
    'due_time'
    >>> isinstance(err, ValueError)
    True
    >>> err.to_dict()["category"]
    'VALIDATION'

Tags:
    error-handling, exception-hierarchy, virtual-time, validation

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification.

    Attributes:
        VALIDATION: An argument was outside its accepted range
        ORDERING: Time was asked to move backwards
        TIMEOUT: A virtual-time wait expired
        INTERNAL: Bugs, unexpected state
    """

    VALIDATION = "VALIDATION"
    ORDERING = "ORDERING"
    TIMEOUT = "TIMEOUT"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        clock_time: ISO timestamp of the clock when the error was raised
        timer_id: Waiter id of the timer involved, if any
        metadata: Additional key-value pairs
    """

    clock_time: str | None = None
    timer_id: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ("clock_time", "timer_id"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class VirtualTimeError(Exception):
    """
    Base exception for all virtual-time errors.

    Subclasses set ``default_category``; callers may still override it.

    Examples:
        >>> err = VirtualTimeError("Something went wrong")
        >>> err.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> err.with_context(timer_id=3).context.timer_id
        3
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()

    def with_context(self, **kwargs: Any) -> VirtualTimeError:
        """
        Add context to this error (fluent API).

        Usage:
            raise OutOfOrderTimeError(current, value).with_context(
                clock_time=current.isoformat()
            )
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(VirtualTimeError, ValueError):
    """
    An argument was rejected before any state was touched.

    Never retryable - the caller must pass a different value.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.constraint = constraint

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        if self.constraint:
            result["constraint"] = self.constraint
        return result


class InvalidDurationError(ValidationError):
    """A duration is negative (other than ``INFINITE``) or above the supported maximum."""

    def __init__(self, field: str, value: Any, constraint: str | None = None):
        super().__init__(
            f"Invalid duration for {field}: {value!r}",
            field=field,
            value=value,
            constraint=constraint or "INFINITE or 0 <= duration <= MAX_SUPPORTED_DURATION",
        )


class InvalidInstantError(ValidationError):
    """An instant was given without tzinfo."""

    def __init__(self, field: str, value: Any):
        super().__init__(
            f"{field} must be a timezone-aware datetime, got {value!r}",
            field=field,
            value=value,
            constraint="tzinfo is not None",
        )


# =============================================================================
# ORDERING / TIMEOUT ERRORS
# =============================================================================


class OutOfOrderTimeError(VirtualTimeError, ValueError):
    """The clock was asked to move to an instant earlier than its current time."""

    default_category = ErrorCategory.ORDERING

    def __init__(self, current: Any, requested: Any):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot go back in time: current={current!s}, requested={requested!s}"
        )


class WaitTimeoutError(VirtualTimeError, TimeoutError):
    """A wait driven by the virtual clock expired before the awaited work finished."""

    default_category = ErrorCategory.TIMEOUT


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "VirtualTimeError",
    "ValidationError",
    "InvalidDurationError",
    "InvalidInstantError",
    "OutOfOrderTimeError",
    "WaitTimeoutError",
]
