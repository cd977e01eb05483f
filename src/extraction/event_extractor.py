from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Union

from pydantic import BaseModel

from calendar_engine.models import CalendarEvent, DateParseResult, EventDraft
from classification.category_classifier import CategoryClassifier
from parsing.date_parser import DateExpressionParser
from storage.event_store import EventStore

logger = logging.getLogger(__name__)

TITLE_INTRODUCERS = (
    "reminder to",
    "reminder for",
    "schedule",
    "add event",
    "add to calendar",
    "create event",
    "plan for",
    "meeting for",
    "appointment for",
)
TITLE_DATE_MARKERS = (" on ", " at ", " tomorrow", " next ", " this ", " in ")
MAX_TITLE_LENGTH = 100

DATE_INDICATORS = ("on", "for", "at", "tomorrow", "next", "this", "coming")
DATE_CUTOFFS = (" at ", " to ", " with ", " for ", " because ")
DEFAULT_DATE_PHRASE = "today"


class ExtractionResult(BaseModel):
    title: str
    category: str
    date_phrase: str
    date: DateParseResult

    def to_draft(self) -> EventDraft:
        return EventDraft(
            title=self.title,
            category=self.category,
            date=self.date.value,
            description="",
        )


def _cut_at_first(text: str, markers) -> str:
    for marker in markers:
        idx = text.find(marker)
        if idx != -1:
            return text[:idx]
    return text


def _cut_at_earliest(text: str, markers) -> str:
    positions = [i for i in (text.find(m) for m in markers) if i != -1]
    return text[:min(positions)] if positions else text


def extract_title(text: str) -> str:
    lower = text.lower()
    title = text.strip()

    for phrase in TITLE_INTRODUCERS:
        idx = lower.find(phrase)
        if idx == -1:
            continue
        rest = text[idx + len(phrase):]
        # markers are matched case-insensitively on the remainder
        cut = len(_cut_at_first(rest.lower(), TITLE_DATE_MARKERS))
        candidate = rest[:cut].strip()
        if candidate:
            title = candidate[0].upper() + candidate[1:]
        break

    if len(title) > MAX_TITLE_LENGTH:
        title = title[:97] + "..."
    return title


def extract_date_phrase(text: str) -> str:
    padded = f" {text.lower().strip()} "
    for indicator in DATE_INDICATORS:
        token = f" {indicator} "
        idx = padded.find(token)
        if idx == -1:
            continue
        rest = padded[idx + len(token):]
        rest = _cut_at_earliest(f" {rest}", DATE_CUTOFFS).strip()
        return f"{indicator} {rest}".strip()
    return DEFAULT_DATE_PHRASE


class EventTextExtractor:
    """Turns one free-form sentence into a persisted calendar event."""

    def __init__(
        self,
        store: EventStore,
        parser: Optional[DateExpressionParser] = None,
        classifier: Optional[CategoryClassifier] = None,
    ):
        self.store = store
        self.parser = parser or DateExpressionParser()
        self.classifier = classifier or CategoryClassifier()

    def extract(self, text: str, today: Union[date, datetime, None] = None) -> ExtractionResult:
        title = extract_title(text)
        date_phrase = extract_date_phrase(text)
        category = self.classifier.classify(text)
        resolved = self.parser.resolve(date_phrase, today)

        logger.info(
            "Extracted event '%s' [%s] from date phrase %r -> %s%s",
            title,
            category,
            date_phrase,
            resolved.value.date(),
            "" if resolved.matched else " (default)",
        )
        return ExtractionResult(title=title, category=category, date_phrase=date_phrase, date=resolved)

    def create_event_from_text(
        self, text: str, today: Union[date, datetime, None] = None
    ) -> Optional[CalendarEvent]:
        """
        Extract and persist in one step. Returns None instead of raising when
        anything goes wrong, storage failures included.
        """
        try:
            result = self.extract(text, today)
            return self.store.add_event(result.to_draft())
        except Exception:
            logger.exception("Error creating event from text: %r", text)
            return None
