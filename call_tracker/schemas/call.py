"""
Data models for logged calls and session statistics.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from call_tracker.schemas.outcome import CallOutcome

NOTES_MAX_LENGTH = 2000


class CallRecord(BaseModel):
    """One logged call. ``id`` and ``timestamp`` never change after creation."""
    id: str
    outcome: CallOutcome
    notes: Optional[str] = None
    timestamp: datetime


class CallCreate(BaseModel):
    outcome: CallOutcome
    notes: Optional[str] = Field(default=None, max_length=NOTES_MAX_LENGTH)

    @field_validator("notes")
    @classmethod
    def _strip_notes(cls, value: Optional[str]) -> Optional[str]:
        return clean_notes(value)


class CallUpdate(CallCreate):
    """Replacement outcome and notes for an existing call."""


class OutcomeBreakdown(BaseModel):
    outcome: CallOutcome
    label: str
    color: str
    count: int
    percentage: float


class SessionStats(BaseModel):
    """Derived, read-only aggregates over the current session."""
    total_calls: int = 0
    confirmed_sales: int = 0
    yes_ratio: float = Field(default=0.0, ge=0.0, le=100.0)
    engagement_ratio: float = Field(default=0.0, ge=0.0, le=100.0)
    breakdown: list[OutcomeBreakdown] = Field(default_factory=list)


def clean_notes(notes: Optional[str]) -> Optional[str]:
    """Trim draft notes; blank or whitespace-only notes become ``None``."""
    if notes is None:
        return None
    return notes.strip() or None
