from __future__ import annotations

from enum import Enum


class RepeatType(str, Enum):
    none = "none"
    weekly = "weekly"
    fortnightly = "fortnightly"
    three_weekly = "3-weekly"
    monthly = "monthly"
    two_monthly = "2-monthly"

    @property
    def is_repeating(self) -> bool:
        return self is not RepeatType.none

    @property
    def week_interval(self) -> int | None:
        return _WEEK_INTERVALS.get(self)

    @property
    def month_interval(self) -> int | None:
        return _MONTH_INTERVALS.get(self)

    @property
    def default_max_count(self) -> int:
        return 52 if self.is_repeating else 1


_WEEK_INTERVALS = {
    RepeatType.weekly: 1,
    RepeatType.fortnightly: 2,
    RepeatType.three_weekly: 3,
}

_MONTH_INTERVALS = {
    RepeatType.monthly: 1,
    RepeatType.two_monthly: 2,
}


def to_rrule(repeat_type: RepeatType) -> str | None:
    """Storage form used by the booking_series.rrule column; None for one-off bookings."""
    if repeat_type.week_interval is not None:
        return f"FREQ=WEEKLY;INTERVAL={repeat_type.week_interval}"
    if repeat_type.month_interval is not None:
        return f"FREQ=MONTHLY;INTERVAL={repeat_type.month_interval}"
    return None


def from_rrule(rrule: str | None) -> RepeatType:
    if not rrule:
        return RepeatType.none
    parts = dict(part.split("=", 1) for part in rrule.split(";") if "=" in part)
    freq = parts.get("FREQ", "").upper()
    interval = int(parts.get("INTERVAL", "1") or 1)
    table = _WEEK_INTERVALS if freq == "WEEKLY" else _MONTH_INTERVALS if freq == "MONTHLY" else {}
    for repeat_type, step in table.items():
        if step == interval:
            return repeat_type
    raise ValueError(f"Unsupported rrule: {rrule}")
