"""Shift Calendar — maps a clock reading to its 12-hour accounting window.

Invariants:
    - resolve_shift is PURE: same instant + timezone → same ShiftWindow
    - MORNING = [07:00, 19:00), NIGHT = [19:00, 07:00 next day), facility local time
    - shift_date is the calendar date of the window start (post-midnight NIGHT
      readings belong to the previous day's NIGHT window)
    - Naive datetimes are rejected

Design Decisions:
    - Windows built from local wall-clock hours and converted back through the
      zone, so DST days produce 11h/13h windows instead of shifted boundaries
    - total_minutes derived from the window itself: efficiency denominators and
      shift resolution can never disagree
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from shiftledger.core.domain_types import ShiftType


MORNING_START_HOUR: int = 7
NIGHT_START_HOUR: int = 19


@dataclass(frozen=True)
class ShiftWindow:
    """A resolved shift: type plus its [start, end) interval in facility time."""
    shift_type: ShiftType
    start: datetime
    end: datetime

    @property
    def shift_date(self) -> date:
        return self.start.date()

    @property
    def total_minutes(self) -> int:
        elapsed = self.end.astimezone(timezone.utc) - self.start.astimezone(timezone.utc)
        return int(elapsed.total_seconds() // 60)

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


def _at(day: date, hour: int, tz: tzinfo) -> datetime:
    return datetime.combine(day, time(hour=hour), tzinfo=tz)


def resolve_shift(now: datetime, tz: tzinfo) -> ShiftWindow:
    """Resolve the shift window containing `now`. Pure, no IO."""
    if now.tzinfo is None:
        raise ValueError("resolve_shift requires a timezone-aware datetime")

    local = now.astimezone(tz)
    today = local.date()

    if MORNING_START_HOUR <= local.hour < NIGHT_START_HOUR:
        return ShiftWindow(
            ShiftType.MORNING,
            _at(today, MORNING_START_HOUR, tz),
            _at(today, NIGHT_START_HOUR, tz),
        )
    if local.hour >= NIGHT_START_HOUR:
        return ShiftWindow(
            ShiftType.NIGHT,
            _at(today, NIGHT_START_HOUR, tz),
            _at(today + timedelta(days=1), MORNING_START_HOUR, tz),
        )
    yesterday = today - timedelta(days=1)
    return ShiftWindow(
        ShiftType.NIGHT,
        _at(yesterday, NIGHT_START_HOUR, tz),
        _at(today, MORNING_START_HOUR, tz),
    )


def next_boundary(now: datetime, tz: tzinfo) -> datetime:
    """Instant at which the window containing `now` closes."""
    return resolve_shift(now, tz).end
