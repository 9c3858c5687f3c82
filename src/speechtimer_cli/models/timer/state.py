"""Timer progress snapshots and crash/reload recovery."""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Literal, Protocol

from platformdirs import user_data_dir
from pydantic import BaseModel, Field, ValidationError, field_validator

from speechtimer_cli.utils.logger import get_logger

DEFAULT_STALENESS_SECONDS = 5 * 60

RecoveryAction = Literal["resume_running", "resume_paused", "none"]

_SAFE_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class TimerSnapshot(BaseModel):
    """Persisted progress of one agenda item's timer."""

    item_id: str
    elapsed: int = Field(default=0, ge=0)
    running: bool = False
    has_started: bool = False
    snapshot_at: str  # ISO 8601

    @field_validator("snapshot_at")
    @classmethod
    def validate_snapshot_at(cls, v: str) -> str:
        """Snapshot time must be a parseable ISO 8601 timestamp."""
        datetime.fromisoformat(v.replace("Z", "+00:00"))
        return v

    @property
    def snapshot_datetime(self) -> datetime:
        """Parse snapshot time as datetime."""
        return datetime.fromisoformat(self.snapshot_at.replace("Z", "+00:00"))


@dataclass(frozen=True)
class RecoveryDecision:
    """How a timer should come back after a reload."""

    action: RecoveryAction
    elapsed: int = 0
    gap_seconds: int = 0
    stale: bool = False


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.astimezone()
    return value


def decide_recovery(
    snapshot: TimerSnapshot | None,
    now: datetime,
    staleness_seconds: int = DEFAULT_STALENESS_SECONDS,
) -> RecoveryDecision:
    """Decide how to restore a timer from its last snapshot.

    A running snapshot younger than the staleness bound resumes running with
    the wall-clock gap added. An older running snapshot, or one that was
    paused after starting, resumes paused at the stored elapsed time.
    Anything else is not recovered.
    """
    if snapshot is None:
        return RecoveryDecision(action="none")

    gap = (_as_aware(now) - _as_aware(snapshot.snapshot_datetime)).total_seconds()
    gap_seconds = max(0, int(gap))

    if snapshot.running and gap_seconds < staleness_seconds:
        return RecoveryDecision(
            action="resume_running",
            elapsed=snapshot.elapsed + gap_seconds,
            gap_seconds=gap_seconds,
        )

    if snapshot.running or snapshot.has_started:
        return RecoveryDecision(
            action="resume_paused",
            elapsed=snapshot.elapsed,
            gap_seconds=gap_seconds,
            stale=snapshot.running,
        )

    return RecoveryDecision(action="none", gap_seconds=gap_seconds)


def snapshot_key(item_id: str) -> str:
    """Derive the storage key owned by an agenda item's timer."""
    if _SAFE_KEY_RE.match(item_id):
        return f"timer_{item_id}"
    safe = re.sub(r"[^A-Za-z0-9_.-]", "_", item_id)
    digest = hashlib.sha1(item_id.encode("utf-8")).hexdigest()[:8]
    return f"timer_{safe}_{digest}"


class SnapshotStore(Protocol):
    """Key/value facility holding one snapshot per agenda item."""

    def save(self, snapshot: TimerSnapshot) -> None: ...

    def load(self, item_id: str) -> TimerSnapshot | None: ...

    def delete(self, item_id: str) -> None: ...

    def list_snapshots(self) -> list[TimerSnapshot]: ...


class MemorySnapshotStore:
    """In-process store; snapshots are kept serialized like the file store."""

    def __init__(self):
        self._entries: dict[str, str] = {}

    def save(self, snapshot: TimerSnapshot) -> None:
        self._entries[snapshot_key(snapshot.item_id)] = snapshot.model_dump_json()

    def load(self, item_id: str) -> TimerSnapshot | None:
        raw = self._entries.get(snapshot_key(item_id))
        if raw is None:
            return None
        return TimerSnapshot.model_validate_json(raw)

    def delete(self, item_id: str) -> None:
        self._entries.pop(snapshot_key(item_id), None)

    def list_snapshots(self) -> list[TimerSnapshot]:
        return [TimerSnapshot.model_validate_json(raw) for raw in self._entries.values()]


class FileSnapshotStore:
    """Stores each snapshot as ``timer_<key>.json`` in a state directory."""

    def __init__(self, state_dir: Path | None = None, logger: logging.Logger | None = None):
        """Initialize the store."""
        if state_dir is None:
            state_dir = Path(user_data_dir("speechtimer_cli")) / "state"

        self.state_dir = state_dir
        self.state_dir.mkdir(parents=True, exist_ok=True)
        self._logger = logger or get_logger("snapshots")

    def path_for(self, item_id: str) -> Path:
        """Return the file backing an item's snapshot."""
        return self.state_dir / f"{snapshot_key(item_id)}.json"

    def save(self, snapshot: TimerSnapshot) -> None:
        """Write the snapshot, replacing any previous one for the item."""
        path = self.path_for(snapshot.item_id)
        try:
            path.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
            path.chmod(0o600)
        except OSError as e:
            raise RuntimeError(f"Failed to save timer snapshot: {e}") from e

    def load(self, item_id: str) -> TimerSnapshot | None:
        """Load an item's snapshot. Returns None if file missing or invalid."""
        path = self.path_for(item_id)
        if not path.exists():
            return None
        return self._read(path)

    def delete(self, item_id: str) -> None:
        """Delete an item's snapshot file."""
        path = self.path_for(item_id)
        if path.exists():
            path.unlink()

    def list_snapshots(self) -> list[TimerSnapshot]:
        """Return every readable snapshot in the state directory."""
        snapshots = []
        for path in sorted(self.state_dir.glob("timer_*.json")):
            snapshot = self._read(path)
            if snapshot is not None:
                snapshots.append(snapshot)
        return snapshots

    def _read(self, path: Path) -> TimerSnapshot | None:
        try:
            return TimerSnapshot.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            self._logger.warning("Ignoring unreadable timer snapshot %s: %s", path.name, e)
            return None
