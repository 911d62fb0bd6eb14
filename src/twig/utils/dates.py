# src/twig/utils/dates.py

"""
Date helpers shared by the task model, reports and renderers.

Timestamps are stored as aware UTC datetimes; anything user-facing
(parsing "today", report periods, "completed today") uses the local
wall-clock date.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Literal

from ..errors import InvalidFormatError

DATE_HELP = "Use YYYY-MM-DD or 'today', 'yesterday', 'tomorrow'"

WORKDAY_HOURS = 8

PeriodKind = Literal["day", "week", "month"]


def utcnow() -> datetime:
    return datetime.now(UTC)


def local_today() -> date:
    return datetime.now().astimezone().date()


def to_local_date(dt: datetime) -> date:
    return dt.astimezone().date()


def local_midnight(d: date) -> datetime:
    """Local 00:00 of `d`, expressed in UTC."""
    return datetime.combine(d, time.min).astimezone().astimezone(UTC)


def parse_date(raw: str) -> datetime:
    """
    Parse a user date.

    Relative words keep the current time of day; explicit dates map to local
    midnight. The result is always UTC.
    """
    text = raw.strip().lower()
    now = utcnow()
    if text == "today":
        return now
    if text == "yesterday":
        return now - timedelta(days=1)
    if text == "tomorrow":
        return now + timedelta(days=1)
    try:
        d = datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        raise InvalidFormatError(f"Invalid date format: {raw!r}. {DATE_HELP}") from None
    return local_midnight(d)


def format_datetime(dt: datetime) -> str:
    return dt.astimezone().strftime("%Y-%m-%d %H:%M")


def format_date(dt: datetime) -> str:
    return dt.astimezone().strftime("%Y-%m-%d")


def format_duration_human(seconds: int) -> str:
    """
    Render accumulated seconds as "{d}d {h}h {m}m" using an 8-hour workday.

    Below one minute renders as "{n}s". Leading zero units are dropped; the
    trailing unit is always present.
    """
    if seconds < 60:
        return f"{seconds}s"

    minutes = seconds // 60
    hours = minutes // 60
    days = hours // WORKDAY_HOURS

    remaining_hours = hours % WORKDAY_HOURS
    remaining_minutes = minutes % 60

    parts: list[str] = []
    if days > 0:
        parts.append(f"{days}d")
    if remaining_hours > 0 or days > 0:
        parts.append(f"{remaining_hours}h")
    if remaining_minutes > 0 or not parts:
        parts.append(f"{remaining_minutes}m")
    return " ".join(parts)


@dataclass(frozen=True, slots=True)
class DateRange:
    """A reporting period anchored on a local calendar date."""

    kind: PeriodKind
    anchor: date

    @classmethod
    def day(cls, raw: str = "today") -> DateRange:
        return cls("day", to_local_date(parse_date(raw)))

    @classmethod
    def week(cls, raw: str = "this week") -> DateRange:
        text = raw.strip().lower()
        if text in ("this week", "week"):
            d = local_today()
        elif text == "last week":
            d = local_today() - timedelta(days=7)
        else:
            d = to_local_date(parse_date(text))
        return cls("week", d - timedelta(days=d.weekday()))

    @classmethod
    def month(cls, raw: str = "this month") -> DateRange:
        text = raw.strip().lower()
        if text in ("this month", "month"):
            d = local_today()
        elif text == "last month":
            d = local_today().replace(day=1) - timedelta(days=1)
        else:
            d = to_local_date(parse_date(text))
        return cls("month", d.replace(day=1))

    @classmethod
    def for_period(cls, kind: PeriodKind, raw: str | None = None) -> DateRange:
        if kind == "day":
            return cls.day(raw or "today")
        if kind == "week":
            return cls.week(raw or "this week")
        return cls.month(raw or "this month")

    @property
    def start(self) -> datetime:
        return local_midnight(self.anchor)

    @property
    def end(self) -> datetime:
        if self.kind == "day":
            return local_midnight(self.anchor + timedelta(days=1))
        if self.kind == "week":
            return local_midnight(self.anchor + timedelta(days=7))
        if self.anchor.month == 12:
            nxt = self.anchor.replace(year=self.anchor.year + 1, month=1)
        else:
            nxt = self.anchor.replace(month=self.anchor.month + 1)
        return local_midnight(nxt)

    def contains(self, dt: datetime | None) -> bool:
        return dt is not None and self.start <= dt < self.end
