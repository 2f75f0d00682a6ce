from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable

from bookings.domain.entities.booking_occurrence import (
    BookingOccurrence,
    OccurrenceStatus,
    PaymentStatus,
)


def materialize(
    series_id: str,
    dates: Iterable[datetime],
    duration_minutes: int,
    id_factory: Callable[[], str] | None = None,
) -> list[BookingOccurrence]:
    """Build one scheduled, unpaid occurrence per date. Times are normalized to UTC."""
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be greater than zero")

    new_id = id_factory or (lambda: str(uuid.uuid4()))
    duration = timedelta(minutes=duration_minutes)

    occurrences: list[BookingOccurrence] = []
    for value in dates:
        start = to_utc(value)
        occurrences.append(
            BookingOccurrence(
                id=new_id(),
                series_id=series_id,
                start_at=start,
                end_at=start + duration,
                status=OccurrenceStatus.scheduled,
                payment_status=PaymentStatus.waiting_payment,
            )
        )
    return occurrences


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
