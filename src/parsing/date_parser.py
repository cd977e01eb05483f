"""
Natural-language date resolution.

Each heuristic is a small frozen rule object with a `kind` tag. Rules are tried
in the order of DEFAULT_RULES and the first one that produces a date wins, so
precedence is visible in one place and every rule can be tested on its own.
Relative rules keep the reference time of day; absolute dates land at midnight.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Literal, Optional, Sequence, Tuple, Union

from dateutil.relativedelta import relativedelta

from calendar_engine.models import DateParseResult

logger = logging.getLogger(__name__)

RuleKind = Literal["keyword", "weekday", "numeric-date", "month-name", "day-range", "day-of-month"]

MONTHS = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)

# Sunday first, as weekday names are checked in this order
WEEKDAYS = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")

_ORDINAL = r"(?:st|nd|rd|th)?"


def _as_datetime(today: Union[date, datetime, None]) -> datetime:
    if today is None:
        return datetime.now()
    if isinstance(today, datetime):
        return today
    return datetime(today.year, today.month, today.day)


def _safe_date(year: int, month: int, day: int) -> Optional[datetime]:
    try:
        return datetime(year, month, day)
    except ValueError:
        return None


def _month_in_text(text: str) -> Optional[int]:
    for i, name in enumerate(MONTHS):
        if name in text:
            return i + 1
    return None


def _day_in_context(text: str, day: int, today: datetime) -> Optional[datetime]:
    """
    Day of a named month, or the next time the day comes round: this month
    unless already passed, else the first following month that has it.
    """
    month = _month_in_text(text)
    if month is not None:
        return _safe_date(today.year, month, day)

    if not 1 <= day <= 31:
        return None
    first = datetime(today.year, today.month, 1)
    if day < today.day:
        first += relativedelta(months=1)
    # the 31st of a 30-day month moves on to the next month that has one
    for _ in range(12):
        found = _safe_date(first.year, first.month, day)
        if found is not None:
            return found
        first += relativedelta(months=1)
    return None


@dataclass(frozen=True)
class KeywordRule:
    phrase: str
    offset_days: int
    kind: RuleKind = "keyword"

    @property
    def name(self) -> str:
        return f"{self.kind}:{self.phrase}"

    def apply(self, text: str, today: datetime) -> Optional[datetime]:
        if self.phrase in text:
            return today + timedelta(days=self.offset_days)
        return None


@dataclass(frozen=True)
class WeekdayRule:
    """
    Next occurrence of a named weekday strictly after today. "next <weekday>"
    skips one more week, except when the named day is today itself.
    """

    kind: RuleKind = "weekday"
    name: str = "weekday"

    def apply(self, text: str, today: datetime) -> Optional[datetime]:
        for name in WEEKDAYS:
            if name not in text:
                continue
            target = (WEEKDAYS.index(name) - 1) % 7  # datetime.weekday(): Monday == 0
            current = today.weekday()
            days = (target - current) % 7 or 7
            if re.search(r"\bnext\b", text) and target != current:
                days += 7
            return today + timedelta(days=days)
        return None


@dataclass(frozen=True)
class NumericDateRule:
    """MM/DD/YYYY or MM-DD-YY(YY); ISO YYYY-MM-DD is accepted as well."""

    kind: RuleKind = "numeric-date"
    name: str = "numeric-date"

    _iso = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")
    _us = re.compile(r"(\d{1,2})[/\-](\d{1,2})[/\-](\d{2,4})")

    def apply(self, text: str, today: datetime) -> Optional[datetime]:
        m = self._iso.search(text)
        if m:
            return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

        m = self._us.search(text)
        if not m:
            return None
        month, day, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
        if year < 100:
            year += 2000
        return _safe_date(year, month, day)


@dataclass(frozen=True)
class MonthNameRule:
    """'April 15th', 'april the 3rd', '15th of April' in the reference year."""

    kind: RuleKind = "month-name"
    name: str = "month-name"

    def apply(self, text: str, today: datetime) -> Optional[datetime]:
        for i, month in enumerate(MONTHS):
            if month not in text:
                continue
            m = re.search(
                rf"\b(\d{{1,2}}){_ORDINAL}\s+(?:of\s+)?{month}|{month}\s+(?:the\s+)?(\d{{1,2}}){_ORDINAL}\b",
                text,
            )
            if m:
                day = int(m.group(1) or m.group(2))
                return _safe_date(today.year, i + 1, day)
        return None


@dataclass(frozen=True)
class DayRangeRule:
    """'from the 14th to 18th' / 'between 3 and 5': resolves to the first day."""

    kind: RuleKind = "day-range"
    name: str = "day-range"

    _pattern = re.compile(
        rf"(?:from|between)\s+(?:the\s+)?(\d{{1,2}}){_ORDINAL}\s+(?:to|until|and|through|-)\s+(?:the\s+)?(\d{{1,2}}){_ORDINAL}"
    )

    def apply(self, text: str, today: datetime) -> Optional[datetime]:
        m = self._pattern.search(text)
        if not m:
            return None
        return _day_in_context(text, int(m.group(1)), today)


@dataclass(frozen=True)
class DayOfMonthRule:
    """'the 22nd', 'on the 5th', '21st'. A bare number is not enough."""

    kind: RuleKind = "day-of-month"
    name: str = "day-of-month"

    _pattern = re.compile(r"\b(?:the\s+(\d{1,2})(?:st|nd|rd|th)?|(\d{1,2})(?:st|nd|rd|th))\b")

    def apply(self, text: str, today: datetime) -> Optional[datetime]:
        m = self._pattern.search(text)
        if not m:
            return None
        day = int(m.group(1) or m.group(2))
        if not 1 <= day <= 31:
            return None
        return _day_in_context(text, day, today)


DateRule = Union[KeywordRule, WeekdayRule, NumericDateRule, MonthNameRule, DayRangeRule, DayOfMonthRule]

DEFAULT_RULES: Tuple[DateRule, ...] = (
    KeywordRule("today", 0),
    KeywordRule("tomorrow", 1),
    KeywordRule("next week", 7),
    WeekdayRule(),
    NumericDateRule(),
    MonthNameRule(),
    DayRangeRule(),
    DayOfMonthRule(),
)


class DateExpressionParser:
    def __init__(self, rules: Sequence[DateRule] = DEFAULT_RULES):
        self.rules = tuple(rules)

    def match(
        self, text: str, today: Union[date, datetime, None] = None
    ) -> Tuple[Optional[DateRule], Optional[datetime]]:
        ref = _as_datetime(today)
        lower = (text or "").lower()
        for rule in self.rules:
            value = rule.apply(lower, ref)
            if value is not None:
                logger.debug("Date text %r matched rule %s -> %s", text, rule.name, value.date())
                return rule, value
        return None, None

    def parse(self, text: str, today: Union[date, datetime, None] = None) -> Optional[datetime]:
        """Resolved date, or None when no rule matches."""
        return self.match(text, today)[1]

    def resolve(self, text: str, today: Union[date, datetime, None] = None) -> DateParseResult:
        """Like parse(), but falls back to today and says so via `matched`."""
        ref = _as_datetime(today)
        rule, value = self.match(text, ref)
        if value is None:
            logger.info("Could not parse date from %r, using today", text)
            return DateParseResult(value=ref, matched=False)
        return DateParseResult(value=value, matched=True, rule=rule.name)


default_parser = DateExpressionParser()


def parse_date_from_text(text: str, today: Union[date, datetime, None] = None) -> Optional[datetime]:
    return default_parser.parse(text, today)


def resolve_date(text: str, today: Union[date, datetime, None] = None) -> DateParseResult:
    return default_parser.resolve(text, today)
