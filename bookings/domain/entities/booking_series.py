from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from bookings.domain.entities.repeat_policy import RepeatType


class SeriesStatus(str, Enum):
    active = "active"
    cancelled = "cancelled"


@dataclass(frozen=True)
class BookingSeries:
    id: str
    lead_id: str
    title: str
    timezone: str
    starts_at: datetime  # UTC
    duration_minutes: int
    repeat_type: RepeatType = RepeatType.none
    until_date: date | None = None
    occurrence_count: int | None = None  # kept as metadata when until_date wins
    notes: str | None = None
    status: SeriesStatus = SeriesStatus.active
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.lead_id:
            raise ValueError("BookingSeries requires a lead_id")
        if self.duration_minutes <= 0:
            raise ValueError("duration_minutes must be greater than zero")
