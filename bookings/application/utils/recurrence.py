from __future__ import annotations

from datetime import date, datetime, timedelta

from dateutil.relativedelta import relativedelta

from bookings.domain.entities.repeat_policy import RepeatType

IMPLICIT_HORIZON = timedelta(days=365)


def expand(
    anchor: datetime,
    policy: RepeatType | str,
    end_bound: date | datetime | None = None,
    max_count: int | None = None,
) -> list[datetime]:
    """
    Expand a repeat policy into ordered occurrence start times.

    - The anchor is always the first element; `none` returns only the anchor.
    - Weekly cadences step 7 * N days, monthly cadences step N calendar months.
    - Monthly steps are computed from the anchor (k * N months) and clamp the
      day-of-month to the length of shorter months: Jan 31 -> Feb 28 -> Mar 31.
    - Stops at `max_count` results or when the next candidate passes the bound.
      A date bound includes that whole day. Without a bound, anchor + 365 days.

    Arithmetic is wall-clock in the anchor's tzinfo, so 09:00 local stays 09:00
    local across daylight-saving changes.
    """
    policy = RepeatType(policy)
    if not policy.is_repeating:
        return [anchor]

    if max_count is None:
        max_count = policy.default_max_count
    if max_count < 1:
        raise ValueError("max_count must be at least 1")

    dates = [anchor]
    step = 1
    while len(dates) < max_count:
        candidate = _nth_candidate(anchor, policy, step)
        if _past_bound(candidate, anchor, end_bound):
            break
        dates.append(candidate)
        step += 1

    return dates


def _nth_candidate(anchor: datetime, policy: RepeatType, n: int) -> datetime:
    weeks = policy.week_interval
    if weeks is not None:
        return anchor + timedelta(days=7 * weeks * n)

    months = policy.month_interval
    if months is None:
        raise ValueError(f"Unsupported repeat policy: {policy.value}")
    return add_months(anchor, months * n)


def add_months(value: datetime, months: int) -> datetime:
    return value + relativedelta(months=months)


def _past_bound(candidate: datetime, anchor: datetime, end_bound: date | datetime | None) -> bool:
    if end_bound is None:
        return candidate > anchor + IMPLICIT_HORIZON
    if isinstance(end_bound, datetime):
        return candidate > end_bound
    return candidate.date() > end_bound
