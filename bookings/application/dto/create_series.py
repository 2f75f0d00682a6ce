from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from bookings.application.exceptions import BestEffortFailure, ValidationError
from bookings.core.config import settings
from bookings.domain.entities.booking_series import BookingSeries
from bookings.domain.entities.repeat_policy import RepeatType


@dataclass(frozen=True)
class CreateSeriesCommand:
    """Validated series-creation request. `starts_at` is aware and expressed in `timezone`."""

    lead_id: str
    starts_at: datetime
    duration_minutes: int
    repeat_type: RepeatType
    timezone: str
    title: str
    until_date: date | None = None
    occurrence_count: int | None = None
    notes: str | None = None
    update_lead_status: bool = True

    @staticmethod
    def from_payload(
        lead_id: str | None,
        starts_at: str | datetime | None,
        duration_minutes: int | None = None,
        repeat_type: str | Enum | None = None,
        until_date: str | date | None = None,
        occurrence_count: int | None = None,
        title: str | None = None,
        notes: str | None = None,
        timezone: str | None = None,
        update_lead_status: bool | None = None,
    ) -> "CreateSeriesCommand":
        lead_id = str(lead_id or "").strip()
        if not lead_id:
            raise ValidationError("leadId is required")
        if starts_at is None or starts_at == "":
            raise ValidationError("startsAt is required")

        tz_name = str(timezone or "").strip() or settings.DEFAULT_TIMEZONE
        try:
            tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValidationError(f"Unknown timezone: {tz_name}")

        start = parse_instant(starts_at, tz)

        if isinstance(repeat_type, Enum):
            repeat_type = repeat_type.value
        try:
            policy = RepeatType(str(repeat_type or RepeatType.none.value).strip().lower())
        except ValueError:
            raise ValidationError(f"Unsupported repeatType: {repeat_type}")

        duration = settings.DEFAULT_DURATION_MINUTES if duration_minutes is None else int(duration_minutes)
        if duration <= 0:
            raise ValidationError("durationMinutes must be greater than zero")

        if occurrence_count is not None and int(occurrence_count) <= 0:
            raise ValidationError("occurrenceCount must be a positive integer")

        return CreateSeriesCommand(
            lead_id=lead_id,
            starts_at=start,
            duration_minutes=duration,
            repeat_type=policy,
            timezone=tz_name,
            title=(title or "").strip() or settings.DEFAULT_SERIES_TITLE,
            until_date=parse_until_date(until_date),
            occurrence_count=int(occurrence_count) if occurrence_count is not None else None,
            notes=(notes or "").strip() or None,
            update_lead_status=update_lead_status is not False,
        )

    def termination(self) -> tuple[date | None, int]:
        """(end_bound, max_count) for the expander. An until date outranks the stored count."""
        default = self.repeat_type.default_max_count
        if self.until_date is not None:
            return self.until_date, default
        if self.occurrence_count is not None:
            return None, self.occurrence_count
        return None, default

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "leadId": self.lead_id,
            "startsAt": self.starts_at.isoformat(),
            "durationMinutes": self.duration_minutes,
            "repeatType": self.repeat_type.value,
            "title": self.title,
            "timezone": self.timezone,
            "updateLeadStatus": self.update_lead_status,
        }
        if self.until_date is not None:
            payload["untilDate"] = self.until_date.isoformat()
        if self.occurrence_count is not None:
            payload["occurrenceCount"] = self.occurrence_count
        if self.notes:
            payload["notes"] = self.notes
        return payload


def parse_instant(value: str | datetime, tz: ZoneInfo) -> datetime:
    """Parse an ISO-8601 datetime. Naive values are read as wall-clock time in `tz`."""
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError("startsAt must be a valid ISO date")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=tz)
    return parsed.astimezone(tz)


def parse_until_date(value: str | date | None) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValidationError("untilDate must be a valid ISO date")


@dataclass(frozen=True)
class CreateSeriesResult:
    series: BookingSeries
    occurrences_created: int
    lead_status_updated: bool = False
    warnings: tuple[BestEffortFailure, ...] = ()
    path: str = "direct"  # "direct" | "remote"
