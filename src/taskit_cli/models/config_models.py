"""Configuration models for Taskit CLI.

The Pomodoro settings are stored with camelCase keys so the persisted
configuration matches the focus engine state snapshot.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_TOTAL_DURATION_MINUTES = 240
DEFAULT_FOCUS_MINUTES = 25
DEFAULT_SHORT_BREAK_MINUTES = 5
DEFAULT_LONG_BREAK_MINUTES = 15
DEFAULT_LONG_BREAK_INTERVAL = 4


class PomodoroConfig(BaseModel):
    """Durations used to plan a focus jornada."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    total_duration_minutes: int = Field(
        default=DEFAULT_TOTAL_DURATION_MINUTES,
        ge=1,
        le=480,
        description="Length of the whole work period",
    )
    focus_minutes: int = Field(default=DEFAULT_FOCUS_MINUTES, ge=1, le=120)
    short_break_minutes: int = Field(default=DEFAULT_SHORT_BREAK_MINUTES, ge=1, le=30)
    long_break_minutes: int = Field(default=DEFAULT_LONG_BREAK_MINUTES, ge=1, le=60)
    long_break_interval: int = Field(
        default=DEFAULT_LONG_BREAK_INTERVAL,
        ge=1,
        le=10,
        description="Focus sessions between long breaks",
    )

    def to_dict(self) -> dict:
        """Serialize using the persisted camelCase keys."""
        return self.model_dump(by_alias=True)


class AppConfig(BaseModel):
    """Main Taskit configuration."""

    pomodoro: PomodoroConfig = Field(default_factory=PomodoroConfig)
