"""Environment-driven defaults for virtual clocks.

Test suites that share one notion of "the start of time" can set it once in
the environment (or a ``.env`` file) instead of in every fixture.

Fields
──────
start          : Initial instant of new clocks (``VIRTUAL_TIME_START``)
auto_advance   : Amount added on every read (``VIRTUAL_TIME_AUTO_ADVANCE``)
log_level      : Level passed to ``configure_logging``
log_format     : ``json`` or ``console``

Examples:
    >>> settings = ClockSettings()
    >>> clock = VirtualClock.from_settings(settings)
    >>> settings.configure_logging()
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .logging import configure_logging

DEFAULT_START = datetime(2000, 1, 1, tzinfo=UTC)


class ClockSettings(BaseSettings):
    """Defaults for :class:`VirtualClock` construction and library logging."""

    model_config = SettingsConfigDict(
        env_prefix="VIRTUAL_TIME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Clock ────────────────────────────────────────────────────
    start: datetime = Field(default=DEFAULT_START, description="Initial virtual instant")
    auto_advance: timedelta = Field(
        default=timedelta(0),
        description="Amount the clock moves forward on every read",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    @field_validator("start")
    @classmethod
    def _require_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("start must include a UTC offset")
        return value

    @field_validator("auto_advance")
    @classmethod
    def _require_non_negative(cls, value: timedelta) -> timedelta:
        if value < timedelta(0):
            raise ValueError("auto_advance must be >= 0")
        return value

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return value

    def configure_logging(self) -> None:
        """Apply ``log_level``/``log_format`` through :func:`virtual_time.logging.configure_logging`."""
        configure_logging(level=self.log_level, json_format=self.log_format == "json")
