from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


EventCategory = Literal[
    "work",
    "personal",
    "family",
    "school",
    "health",
    "finance",
    "other",
    "general",
    # categories produced by text extraction
    "career",
    "learning",
]

RecurringFrequency = Literal["none", "daily", "weekly", "biweekly", "monthly"]


class EventDraft(BaseModel):
    """An event that has not been persisted yet (no id)."""

    title: str = Field(..., min_length=1)
    category: EventCategory = "general"
    date: datetime
    description: str = ""

    recurring: RecurringFrequency = "none"
    end_date: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("title must not be blank")
        return v2

    @field_validator("date", "end_date")
    @classmethod
    def naive_local_time(cls, v: Optional[datetime]) -> Optional[datetime]:
        # stored dates are naive local time so they compare against datetime.now()
        if v is not None and v.tzinfo is not None:
            return v.astimezone().replace(tzinfo=None)
        return v

    @field_validator("description", mode="before")
    @classmethod
    def description_none_to_empty(cls, v):
        return "" if v is None else v


class CalendarEvent(EventDraft):
    id: str = Field(..., min_length=1)


class DateParseResult(BaseModel):
    """Resolved date plus whether a rule matched or the value is the fallback."""

    value: datetime
    matched: bool
    rule: Optional[str] = None
