"""Matching of one-time and recurring time periods."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from dateutil import rrule as _rrule

# frequency name -> (rrule frequency, years, months, days)
_FREQUENCIES = {
    "Daily": (_rrule.DAILY, 0, 0, 1),
    "Weekly": (_rrule.WEEKLY, 0, 0, 7),
    "Monthly": (_rrule.MONTHLY, 0, 1, 0),
    "Yearly": (_rrule.YEARLY, 1, 0, 0),
}

_TICK = timedelta(microseconds=1)


@dataclass(frozen=True)
class RecurrenceRule:
    """How often a period repeats, and until when."""

    frequency: str = ""
    until_time: datetime | None = None


def _format_rfc3339(dt: datetime) -> str:
    offset = dt.utcoffset()
    text = dt.isoformat(timespec="seconds")
    if offset is not None and offset == timedelta(0):
        return text[: -len("+00:00")] + "Z"
    return text


@dataclass(frozen=True)
class Period:
    """A time span with a start and an end."""

    start_time: datetime
    end_time: datetime

    def __str__(self) -> str:
        return _format_rfc3339(self.start_time) + "-" + _format_rfc3339(self.end_time)


def _as_utc(dt: datetime) -> datetime:
    return dt.astimezone(timezone.utc) if dt.tzinfo is not None else dt


def _add(dt: datetime, delta: timedelta) -> datetime:
    """Add an absolute duration, keeping the original time zone."""
    if dt.tzinfo is None:
        return dt + delta
    return (_as_utc(dt) + delta).astimezone(dt.tzinfo)


def _elapsed(start: datetime, end: datetime) -> timedelta:
    return _as_utc(end) - _as_utc(start)


def _shift_calendar(now: datetime, years: int, months: int, days: int) -> datetime:
    """Shift by calendar units, letting out-of-range days roll over."""
    month_index = now.month - 1 + months
    year = now.year + years + month_index // 12
    month = month_index % 12 + 1
    first_of_month = now.replace(year=year, month=month, day=1)
    return first_of_month + timedelta(days=now.day - 1 + days)


def match_schedule(
    now: datetime,
    start_time: datetime,
    end_time: datetime,
    recurrence_rule: RecurrenceRule,
) -> tuple[Period | None, Period | None]:
    """Return the period active at ``now`` and the next upcoming one.

    Raises ValueError for an unknown frequency or a period longer than
    the interval its frequency implies.
    """
    frequency = recurrence_rule.frequency

    if frequency == "":
        if now < start_time:
            return None, Period(start_time, end_time)
        if now < end_time:
            return Period(start_time, end_time), None
        return None, None

    try:
        freq_value, years, months, days = _FREQUENCIES[frequency]
    except KeyError:
        raise ValueError(
            f'invalid freq "{frequency}": It must be one of "Daily", "Weekly", "Monthly", and "Yearly"'
        ) from None

    freq_later = _shift_calendar(now, years, months, days)
    freq_duration = _elapsed(now, freq_later)

    override_duration = _elapsed(start_time, end_time)
    if override_duration > freq_duration:
        raise ValueError(
            f"override's duration {override_duration} must be equal to or shorter than "
            f'the duration implied by freq "{frequency}" ({freq_duration})'
        )

    rule = _rrule.rrule(freq_value, dtstart=start_time, until=recurrence_rule.until_time)

    active_starts = rule.between(_add(now, -override_duration + _TICK), now, inc=True)
    if len(active_starts) > 1:
        raise RuntimeError(f"unexpected number of active overrides found: {active_starts}")

    active = None
    if active_starts:
        begin = active_starts[0]
        active = Period(begin, _add(begin, override_duration))

    upcoming_starts = rule.between(_add(now, _TICK), freq_later, inc=True)

    upcoming = None
    if upcoming_starts:
        begin = upcoming_starts[0]
        upcoming = Period(begin, _add(begin, override_duration))

    return active, upcoming