"""Configuration models.

Settings are grouped by concern and serialized as ``config.json``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from speechtimer_cli.models.agenda import SessionCategory


class TimerConfig(BaseModel):
    """Timer and recovery configuration."""

    staleness_seconds: int = Field(default=300, ge=0)
    white_grace_seconds: int | None = Field(default=30)
    tick_interval: float = Field(default=1.0, gt=0)
    sound: bool = Field(default=True)
    white_card_categories: list[str] = Field(
        default_factory=lambda: [
            SessionCategory.PREPARED_SPEECH.value,
            SessionCategory.LONG_EVALUATION.value,
        ]
    )

    @field_validator("white_grace_seconds")
    @classmethod
    def validate_white_grace(cls, v: int | None) -> int | None:
        """Grace is a length of time; 0 disables the white card."""
        if v is not None and v < 0:
            raise ValueError("white_grace_seconds must not be negative")
        return v

    @field_validator("white_card_categories", mode="before")
    @classmethod
    def validate_white_card_categories(cls, v: str | list | None) -> list[str]:
        """Accept a list or a comma-separated string of category values."""
        if v is None:
            return []
        if isinstance(v, str):
            v = [part.strip() for part in v.split(",") if part.strip()]
        return [SessionCategory(c).value for c in v]


class ParserConfig(BaseModel):
    """Agenda parser configuration."""

    default_duration_seconds: int = Field(default=180, gt=0)


class OutputConfig(BaseModel):
    """Output configuration."""

    color: bool = Field(default=True)
    compact: bool = Field(default=False)


class AppConfig(BaseModel):
    """Main application configuration."""

    timer: TimerConfig = Field(default_factory=TimerConfig)
    parser: ParserConfig = Field(default_factory=ParserConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
