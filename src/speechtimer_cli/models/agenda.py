"""Agenda data models."""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

_SCHEDULED_TIME_RE = re.compile(r"^\d{2}:\d{2}:\d{2}$")


class SessionCategory(str, Enum):
    """Kind of agenda segment; selects the stage-signal preset."""

    PREPARED_SPEECH = "prepared_speech"
    LONG_EVALUATION = "long_evaluation"
    SHORT_EVALUATION = "short_evaluation"  # also impromptu / table topics
    SHARE_HOST = "share_host"
    OTHER = "other"

    @property
    def label(self) -> str:
        """Short human-readable name."""
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    SessionCategory.PREPARED_SPEECH: "Prepared speech",
    SessionCategory.LONG_EVALUATION: "Long evaluation",
    SessionCategory.SHORT_EVALUATION: "Short evaluation / impromptu",
    SessionCategory.SHARE_HOST: "Share / host",
    SessionCategory.OTHER: "Other",
}


class AgendaItemCreate(BaseModel):
    """Agenda item without a persistent identity (parser output, manual add).

    Attributes:
        title: Segment title as written in the agenda
        duration: Planned duration in seconds
        category: Session category driving the stage-signal rules
        speaker: Optional speaker name
        scheduled_time: Optional planned start time as ``HH:MM:SS``
        level: Optional rank/level tag (e.g. ``CC``, ``DTM``)
    """

    title: str = ""
    duration: int = Field(default=180, ge=0)
    category: SessionCategory = SessionCategory.OTHER
    speaker: str | None = None
    scheduled_time: str | None = None
    level: str | None = None

    @field_validator("scheduled_time")
    @classmethod
    def validate_scheduled_time(cls, v: str | None) -> str | None:
        """Scheduled time must already be canonical ``HH:MM:SS``."""
        if v is None:
            return None
        if not _SCHEDULED_TIME_RE.match(v):
            raise ValueError("scheduled_time must be HH:MM:SS")
        return v

    @property
    def duration_minutes(self) -> float:
        """Planned duration in minutes, as shown on edit surfaces."""
        return self.duration / 60


class AgendaItem(AgendaItemCreate):
    """Agenda item owned by a session."""

    id: str


class AgendaItemUpdate(BaseModel):
    """Model for editing an existing agenda item.

    All fields are optional - only provided fields will be updated.
    """

    title: str | None = None
    duration: int | None = Field(default=None, ge=0)
    category: SessionCategory | None = None
    speaker: str | None = None
    scheduled_time: str | None = None
    level: str | None = None


class AgendaImport(BaseModel):
    """Result of parsing a pasted agenda: items plus validation messages."""

    items: list[AgendaItemCreate] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Whether the import may proceed."""
        return bool(self.items) and not self.errors


class CompletionRecord(BaseModel):
    """Outcome of one timed agenda item, emitted when its timer stops."""

    model_config = ConfigDict(frozen=True)

    item_id: str
    planned_duration: int = Field(ge=0)
    actual_duration: int = Field(ge=0)
    is_overtime: bool
    overtime_amount: int = Field(ge=0)
    completed_at: datetime | None = None
