from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any

from supabase import Client

from bookings.application.exceptions import NotFoundError, PersistenceError
from bookings.application.ports.booking_store import BookingStorePort
from bookings.application.ports.lead_store import LeadStorePort
from bookings.domain.entities.booking_occurrence import (
    BookingOccurrence,
    OccurrenceStatus,
    PaymentStatus,
)
from bookings.domain.entities.booking_series import BookingSeries, SeriesStatus
from bookings.domain.entities.lead import Lead
from bookings.domain.entities.repeat_policy import from_rrule, to_rrule
from bookings.infrastructure.store.supabase_client import execute, is_rejected_request

SERIES_TABLE = "booking_series"
OCCURRENCES_TABLE = "booking_occurrences"
LEADS_TABLE = "extracted_leads"


class SupabaseBookingStore(BookingStorePort):
    def __init__(self, client: Client) -> None:
        self._client = client

    def insert_series(self, series: BookingSeries) -> BookingSeries:
        rows = execute(self._client.table(SERIES_TABLE).insert(_series_to_row(series)), SERIES_TABLE)
        if not rows:
            raise PersistenceError("Failed to create booking series")
        return _row_to_series(rows[0])

    def insert_occurrences(self, occurrences: list[BookingOccurrence]) -> list[BookingOccurrence]:
        # PostgREST runs a bulk insert in one statement, so it lands whole or not at all.
        query = self._client.table(OCCURRENCES_TABLE).insert([_occurrence_to_row(o) for o in occurrences])
        return [_row_to_occurrence(r) for r in execute(query, OCCURRENCES_TABLE)]

    def get_series(self, series_id: str) -> BookingSeries | None:
        rows = execute(self._client.table(SERIES_TABLE).select("*").eq("id", series_id), SERIES_TABLE)
        return _row_to_series(rows[0]) if rows else None

    def update_series(self, series_id: str, changes: dict[str, Any]) -> BookingSeries:
        values = {_SERIES_COLUMNS.get(k, k): _to_json(k, v) for k, v in changes.items()}
        rows = execute(self._client.table(SERIES_TABLE).update(values).eq("id", series_id), SERIES_TABLE)
        if not rows:
            raise NotFoundError("Series not found")
        return _row_to_series(rows[0])

    def delete_series(self, series_id: str) -> None:
        # booking_occurrences.series_id is ON DELETE CASCADE
        execute(self._client.table(SERIES_TABLE).delete().eq("id", series_id), SERIES_TABLE)

    def get_occurrence(self, occurrence_id: str) -> BookingOccurrence | None:
        query = self._client.table(OCCURRENCES_TABLE).select("*").eq("id", occurrence_id)
        rows = execute(query, OCCURRENCES_TABLE)
        return _row_to_occurrence(rows[0]) if rows else None

    def list_occurrences(self, series_id: str) -> list[BookingOccurrence]:
        query = self._client.table(OCCURRENCES_TABLE).select("*").eq("series_id", series_id).order("start_at")
        return [_row_to_occurrence(r) for r in execute(query, OCCURRENCES_TABLE)]

    def update_occurrence(self, occurrence_id: str, changes: dict[str, Any]) -> BookingOccurrence:
        values = {k: _to_json(k, v) for k, v in changes.items()}
        query = self._client.table(OCCURRENCES_TABLE).update(values).eq("id", occurrence_id)
        rows = execute(query, OCCURRENCES_TABLE)
        if not rows:
            raise NotFoundError("Occurrence not found")
        return _row_to_occurrence(rows[0])


class SupabaseLeadStore(LeadStorePort):
    def __init__(self, client: Client) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    def get_lead(self, lead_id: str) -> Lead | None:
        query = self._client.table(LEADS_TABLE).select("*").eq("id", lead_id)
        try:
            rows = execute(query, LEADS_TABLE)
        except PersistenceError as e:
            # A lookup PostgREST refuses (e.g. an id that is not a uuid) matches no lead.
            if is_rejected_request(e.__cause__):
                self._logger.info("Lead lookup rejected, treating as missing", extra={"lead_id": lead_id})
                return None
            raise
        if not rows:
            return None
        row = rows[0]
        return Lead(
            id=str(row["id"]),
            name=row.get("name"),
            email=row.get("email"),
            phone=row.get("phone"),
            status=row.get("status"),
        )

    def update_status(self, lead_id: str, status: str | None) -> None:
        execute(self._client.table(LEADS_TABLE).update({"status": status}).eq("id", lead_id), LEADS_TABLE)


_SERIES_COLUMNS = {"repeat_type": "rrule"}


def _to_json(key: str, value: Any) -> Any:
    if key == "repeat_type":
        return to_rrule(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _parse_dt(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _series_to_row(series: BookingSeries) -> dict[str, Any]:
    return {
        "id": series.id,
        "lead_id": series.lead_id,
        "title": series.title,
        "timezone": series.timezone,
        "starts_at": series.starts_at.isoformat(),
        "duration_minutes": series.duration_minutes,
        "rrule": to_rrule(series.repeat_type),
        "until_date": series.until_date.isoformat() if series.until_date else None,
        "occurrence_count": series.occurrence_count,
        "notes": series.notes,
        "status": series.status.value,
    }


def _row_to_series(row: dict[str, Any]) -> BookingSeries:
    return BookingSeries(
        id=str(row["id"]),
        lead_id=str(row["lead_id"]),
        title=row.get("title") or "",
        timezone=row.get("timezone") or "UTC",
        starts_at=_parse_dt(row["starts_at"]),
        duration_minutes=int(row["duration_minutes"]),
        repeat_type=from_rrule(row.get("rrule")),
        until_date=date.fromisoformat(row["until_date"]) if row.get("until_date") else None,
        occurrence_count=row.get("occurrence_count"),
        notes=row.get("notes"),
        status=SeriesStatus(row.get("status") or "active"),
        created_at=_parse_dt(row.get("created_at")),
    )


def _occurrence_to_row(occurrence: BookingOccurrence) -> dict[str, Any]:
    return {
        "id": occurrence.id,
        "series_id": occurrence.series_id,
        "start_at": occurrence.start_at.isoformat(),
        "end_at": occurrence.end_at.isoformat(),
        "original_start_at": occurrence.original_start_at.isoformat() if occurrence.original_start_at else None,
        "status": occurrence.status.value,
        "notes": occurrence.notes,
        "payment_status": occurrence.payment_status.value,
        "payment_link": occurrence.payment_link,
        "payment_amount_cents": occurrence.payment_amount_cents,
        "payment_notes": occurrence.payment_notes,
        "payment_paid_at": occurrence.payment_paid_at.isoformat() if occurrence.payment_paid_at else None,
    }


def _row_to_occurrence(row: dict[str, Any]) -> BookingOccurrence:
    return BookingOccurrence(
        id=str(row["id"]),
        series_id=str(row["series_id"]),
        start_at=_parse_dt(row["start_at"]),
        end_at=_parse_dt(row["end_at"]),
        status=OccurrenceStatus(row.get("status") or "scheduled"),
        original_start_at=_parse_dt(row.get("original_start_at")),
        notes=row.get("notes"),
        payment_status=PaymentStatus(row.get("payment_status") or "waiting_payment"),
        payment_link=row.get("payment_link"),
        payment_amount_cents=row.get("payment_amount_cents"),
        payment_notes=row.get("payment_notes"),
        payment_paid_at=_parse_dt(row.get("payment_paid_at")),
    )
