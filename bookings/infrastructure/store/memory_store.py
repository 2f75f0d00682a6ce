from __future__ import annotations

from dataclasses import replace
from typing import Any

from bookings.application.exceptions import NotFoundError, PersistenceError
from bookings.application.ports.booking_store import BookingStorePort
from bookings.application.ports.lead_store import LeadStorePort
from bookings.domain.entities.booking_occurrence import BookingOccurrence
from bookings.domain.entities.booking_series import BookingSeries
from bookings.domain.entities.lead import Lead


class MemoryBookingStore(BookingStorePort):
    def __init__(self) -> None:
        self._series: dict[str, BookingSeries] = {}
        self._occurrences: dict[str, BookingOccurrence] = {}

    def insert_series(self, series: BookingSeries) -> BookingSeries:
        if series.id in self._series:
            raise PersistenceError(f"duplicate key value violates unique constraint (series {series.id})")
        self._series[series.id] = series
        return series

    def insert_occurrences(self, occurrences: list[BookingOccurrence]) -> list[BookingOccurrence]:
        # Validate the whole batch before writing anything.
        seen: set[tuple[str, Any]] = {
            (o.series_id, o.original_start_at or o.start_at) for o in self._occurrences.values()
        }
        for occurrence in occurrences:
            if occurrence.series_id not in self._series:
                raise PersistenceError(f"series {occurrence.series_id} does not exist")
            if occurrence.id in self._occurrences:
                raise PersistenceError(f"duplicate occurrence id {occurrence.id}")
            key = (occurrence.series_id, occurrence.original_start_at or occurrence.start_at)
            if key in seen:
                raise PersistenceError("duplicate occurrence for series at the same start time")
            seen.add(key)

        for occurrence in occurrences:
            self._occurrences[occurrence.id] = occurrence
        return list(occurrences)

    def get_series(self, series_id: str) -> BookingSeries | None:
        return self._series.get(series_id)

    def update_series(self, series_id: str, changes: dict[str, Any]) -> BookingSeries:
        current = self._series.get(series_id)
        if current is None:
            raise NotFoundError("Series not found")
        updated = _apply(current, changes)
        self._series[series_id] = updated
        return updated

    def delete_series(self, series_id: str) -> None:
        self._series.pop(series_id, None)
        for occurrence_id in [o.id for o in self._occurrences.values() if o.series_id == series_id]:
            del self._occurrences[occurrence_id]

    def get_occurrence(self, occurrence_id: str) -> BookingOccurrence | None:
        return self._occurrences.get(occurrence_id)

    def list_occurrences(self, series_id: str) -> list[BookingOccurrence]:
        items = [o for o in self._occurrences.values() if o.series_id == series_id]
        return sorted(items, key=lambda o: o.start_at)

    def update_occurrence(self, occurrence_id: str, changes: dict[str, Any]) -> BookingOccurrence:
        current = self._occurrences.get(occurrence_id)
        if current is None:
            raise NotFoundError("Occurrence not found")
        updated = _apply(current, changes)
        self._occurrences[occurrence_id] = updated
        return updated


class MemoryLeadStore(LeadStorePort):
    def __init__(self, leads: list[Lead] | None = None) -> None:
        self._leads: dict[str, Lead] = {lead.id: lead for lead in leads or []}

    def add(self, lead: Lead) -> None:
        self._leads[lead.id] = lead

    def get_lead(self, lead_id: str) -> Lead | None:
        return self._leads.get(lead_id)

    def update_status(self, lead_id: str, status: str | None) -> None:
        lead = self._leads.get(lead_id)
        if lead is None:
            raise NotFoundError("Lead not found")
        self._leads[lead_id] = replace(lead, status=status)


def _apply(record, changes: dict[str, Any]):
    if "id" in changes or "series_id" in changes or "lead_id" in changes:
        raise PersistenceError("identity and owner references are immutable")
    try:
        return replace(record, **changes)
    except (TypeError, ValueError) as e:
        raise PersistenceError(str(e)) from e
