"""Pydantic models: the single source of truth for all data types."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _new_id() -> str:
    return uuid.uuid4().hex


class JournalEntry(BaseModel):
    """A logged obsession, with the compulsion it led to (if any).

    Frozen: changes go through ``JournalStore`` so they are saved and observed.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    obsession: str = Field(min_length=1)
    compulsion: Optional[str] = None

    @property
    def has_compulsion(self) -> bool:
        return bool(self.compulsion)


class Trigger(str, enum.Enum):
    """Fixed catalog of mood triggers."""

    STRESS = "Stress"
    SOCIAL = "Social"
    HEALTH = "Health"
    WORK = "Work"
    FAMILY = "Family"
    ENVIRONMENT = "Environment"


class MoodRecord(BaseModel):
    """A single mood check-in. Immutable once recorded."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    timestamp: datetime = Field(default_factory=datetime.now)
    mood_score: int = Field(ge=1, le=5)
    triggers: tuple[Trigger, ...] = ()
    note: str = ""

    @field_validator("triggers")
    @classmethod
    def _catalog_order(cls, value: tuple[Trigger, ...]) -> tuple[Trigger, ...]:
        # De-duplicate and keep catalog order so counting is deterministic.
        chosen = set(value)
        return tuple(t for t in Trigger if t in chosen)


class PhaseKind(str, enum.Enum):
    """What a timer phase represents."""

    GET_READY = "get_ready"
    INHALE = "inhale"
    EXHALE = "exhale"
    BODY_PART = "body_part"
    EXPOSURE = "exposure"


class Phase(BaseModel):
    """A named, fixed-length segment of a guided exercise."""

    model_config = ConfigDict(frozen=True)

    kind: PhaseKind
    label: str
    seconds: int = Field(gt=0)
    cycle: int = Field(default=0, ge=0)


class TimerState(str, enum.Enum):
    """Phase timer lifecycle states."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


class TimerSnapshot(BaseModel):
    """Point-in-time view of a phase timer, handed to tick callbacks."""

    state: TimerState
    phase: Optional[Phase] = None
    phase_index: int = Field(default=0, ge=0)
    phase_count: int = Field(default=0, ge=0)
    remaining: int = Field(default=0, ge=0)
    total_remaining: int = Field(default=0, ge=0)
    elapsed: int = Field(default=0, ge=0)

    @property
    def progress(self) -> float:
        total = self.elapsed + self.total_remaining
        return self.elapsed / total if total else 0.0


ErpSeconds = Literal[60, 300, 600]


class ErpSessionCreate(BaseModel):
    """Input model for logging an exposure session."""

    challenge: str = Field(default="", max_length=500)
    duration_seconds: int = Field(gt=0)
    anxiety_before: int = Field(ge=1, le=10)
    anxiety_after: Optional[int] = Field(default=None, ge=1, le=10)


class ErpSession(ErpSessionCreate):
    """A completed exposure session."""

    id: int
    completed_at: datetime = Field(default_factory=datetime.now)

    @property
    def calmness(self) -> Optional[int]:
        """Calmness meter reading: 10 minus the anxiety felt afterwards."""
        if self.anxiety_after is None:
            return None
        return 10 - self.anxiety_after

    @property
    def anxiety_drop(self) -> Optional[int]:
        if self.anxiety_after is None:
            return None
        return self.anxiety_before - self.anxiety_after


class AppConfig(BaseModel):
    """Application configuration (persisted to ~/.config/ocdian/config.json)."""

    db_path: Optional[str] = None  # None = use default (~/.local/share/ocdian/)
    erp_seconds: ErpSeconds = 60
    breathing_cycles: int = Field(default=6, ge=1, le=12)
