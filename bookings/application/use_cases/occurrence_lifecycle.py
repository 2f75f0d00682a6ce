from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable
from zoneinfo import ZoneInfo

from bookings.application.dto.create_series import parse_instant
from bookings.application.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from bookings.application.ports.booking_store import BookingStorePort
from bookings.application.ports.payment_links import PaymentLinkPort
from bookings.application.utils.amounts import resolve_amount_cents
from bookings.application.utils.materializer import to_utc
from bookings.domain.entities.booking_occurrence import (
    BookingOccurrence,
    OccurrenceStatus,
    PaymentStatus,
)
from bookings.domain.entities.booking_series import BookingSeries, SeriesStatus

SCHEDULING_TRANSITIONS: dict[OccurrenceStatus, frozenset[OccurrenceStatus]] = {
    OccurrenceStatus.scheduled: frozenset({OccurrenceStatus.completed, OccurrenceStatus.cancelled}),
    OccurrenceStatus.completed: frozenset(),
    OccurrenceStatus.cancelled: frozenset(),
}

PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.waiting_payment: frozenset({PaymentStatus.invoice_sent, PaymentStatus.paid}),
    PaymentStatus.invoice_sent: frozenset({PaymentStatus.paid}),
    PaymentStatus.paid: frozenset(),
}


def can_transition(current: OccurrenceStatus, target: OccurrenceStatus) -> bool:
    return target == current or target in SCHEDULING_TRANSITIONS[current]


def can_transition_payment(current: PaymentStatus, target: PaymentStatus) -> bool:
    return target == current or target in PAYMENT_TRANSITIONS[current]


def display_payment_status(occurrence: BookingOccurrence, quote_paid_by_card: bool = False) -> PaymentStatus:
    """Status shown on the completed-jobs board; a card-paid quote counts as paid."""
    if occurrence.payment_status == PaymentStatus.paid or quote_paid_by_card:
        return PaymentStatus.paid
    return occurrence.payment_status


class OccurrenceLifecycleUseCase:
    """
    Operational changes to a single occurrence after its series was created.

    Scheduling: scheduled -> completed | cancelled, both terminal.
    Payment (completed occurrences only): waiting_payment -> invoice_sent -> paid,
    or waiting_payment -> paid directly. Paid is terminal.
    """

    def __init__(
        self,
        store: BookingStorePort,
        payment_links: PaymentLinkPort | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._payment_links = payment_links
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._logger = logging.getLogger(__name__)

    def change_status(self, occurrence_id: str, status: OccurrenceStatus | str) -> BookingOccurrence:
        target = _coerce(OccurrenceStatus, status, "status")
        occurrence = self._get(occurrence_id)
        if occurrence.status == target:
            return occurrence
        if not can_transition(occurrence.status, target):
            raise InvalidTransitionError(
                f"Cannot move occurrence from {occurrence.status.value} to {target.value}"
            )

        updated = self._store.update_occurrence(occurrence_id, {"status": target})
        self._logger.info(
            "Occurrence status changed",
            extra={"occurrence_id": occurrence_id, "status": target.value},
        )
        return updated

    def reschedule(self, occurrence_id: str, new_start: datetime) -> BookingOccurrence:
        occurrence = self._get(occurrence_id)
        if occurrence.status != OccurrenceStatus.scheduled:
            raise InvalidTransitionError("Only scheduled occurrences can be moved")

        series = self._store.get_series(occurrence.series_id)
        if series is None:
            raise NotFoundError("Series not found")
        # naive times are wall-clock in the series timezone, as at creation
        start = to_utc(parse_instant(new_start, ZoneInfo(series.timezone)))
        changes: dict[str, Any] = {
            "start_at": start,
            "end_at": start + occurrence.duration,
            "original_start_at": occurrence.original_start_at or occurrence.start_at,
        }
        updated = self._store.update_occurrence(occurrence_id, changes)
        self._logger.info(
            "Occurrence rescheduled",
            extra={"occurrence_id": occurrence_id, "start_at": start.isoformat()},
        )
        return updated

    def update_notes(self, occurrence_id: str, notes: str | None) -> BookingOccurrence:
        self._get(occurrence_id)
        return self._store.update_occurrence(occurrence_id, {"notes": (notes or "").strip() or None})

    def cancel_series(self, series_id: str) -> BookingSeries:
        """Cancel a series and every occurrence of it that is still scheduled."""
        series = self._store.get_series(series_id)
        if series is None:
            raise NotFoundError("Series not found")

        for occurrence in self._store.list_occurrences(series_id):
            if occurrence.status == OccurrenceStatus.scheduled:
                self._store.update_occurrence(occurrence.id, {"status": OccurrenceStatus.cancelled})

        if series.status == SeriesStatus.cancelled:
            return series
        updated = self._store.update_series(series_id, {"status": SeriesStatus.cancelled})
        self._logger.info("Booking series cancelled", extra={"series_id": series_id})
        return updated

    def set_payment_status(
        self,
        occurrence_id: str,
        status: PaymentStatus | str,
        amount_cents: int | None = None,
    ) -> BookingOccurrence:
        """
        Status-only payment change. An amount is recorded only while the occurrence
        has no payment link; a link's amount is never replaced or cleared here.
        """
        target = _coerce(PaymentStatus, status, "payment status")
        if target == PaymentStatus.paid:
            return self.mark_paid(occurrence_id, amount_cents=amount_cents)

        occurrence = self._get_completed(occurrence_id)
        if not can_transition_payment(occurrence.payment_status, target):
            raise InvalidTransitionError(
                f"Cannot move payment from {occurrence.payment_status.value} to {target.value}"
            )

        changes: dict[str, Any] = {"payment_status": target}
        changes.update(self._amount_changes(occurrence, amount_cents))
        return self._store.update_occurrence(occurrence_id, changes)

    def mark_paid(self, occurrence_id: str, amount_cents: int | None = None) -> BookingOccurrence:
        occurrence = self._get_completed(occurrence_id)
        if occurrence.payment_status == PaymentStatus.paid:
            return occurrence

        now = self._clock()
        note = f"Marked paid manually on {now.strftime('%Y-%m-%d %H:%M %Z').strip()}"
        changes: dict[str, Any] = {
            "payment_status": PaymentStatus.paid,
            "payment_paid_at": now,
            "payment_notes": f"{occurrence.payment_notes}\n{note}" if occurrence.payment_notes else note,
        }
        changes.update(self._amount_changes(occurrence, amount_cents))

        updated = self._store.update_occurrence(occurrence_id, changes)
        self._logger.info("Occurrence marked paid", extra={"occurrence_id": occurrence_id})
        return updated

    def create_payment_link(
        self,
        occurrence_id: str,
        description: str,
        manual_amount: str | float | None = None,
        quoted_total: str | float | None = None,
        customer_name: str | None = None,
        customer_email: str | None = None,
    ) -> BookingOccurrence:
        if self._payment_links is None:
            raise ValidationError("Payment links are not configured")

        occurrence = self._get_completed(occurrence_id)
        if occurrence.payment_status == PaymentStatus.paid:
            raise InvalidTransitionError("Occurrence is already paid")

        amount = resolve_amount_cents(manual_amount, occurrence.payment_amount_cents, quoted_total)
        if amount is None:
            raise ValidationError("Enter a valid amount to generate a link")

        link = self._payment_links.create_link(
            amount_cents=amount,
            description=description,
            customer_name=customer_name,
            customer_email=customer_email,
            reference=occurrence_id,
        )

        updated = self._store.update_occurrence(
            occurrence_id,
            {
                "payment_link": link.url,
                "payment_status": PaymentStatus.invoice_sent,
                "payment_amount_cents": amount,
            },
        )
        self._logger.info(
            "Payment link created",
            extra={"occurrence_id": occurrence_id, "amount_cents": amount, "link_id": link.id},
        )
        return updated

    def _get(self, occurrence_id: str) -> BookingOccurrence:
        occurrence = self._store.get_occurrence(occurrence_id)
        if occurrence is None:
            raise NotFoundError("Occurrence not found")
        return occurrence

    def _get_completed(self, occurrence_id: str) -> BookingOccurrence:
        occurrence = self._get(occurrence_id)
        if occurrence.status != OccurrenceStatus.completed:
            raise InvalidTransitionError("Payment can only be tracked for completed occurrences")
        return occurrence

    def _amount_changes(self, occurrence: BookingOccurrence, amount_cents: int | None) -> dict[str, Any]:
        if amount_cents is None or amount_cents <= 0:
            return {}
        if occurrence.payment_link:
            if amount_cents != occurrence.payment_amount_cents:
                self._logger.info(
                    "Ignoring amount on status change, link amount kept",
                    extra={"occurrence_id": occurrence.id, "amount_cents": occurrence.payment_amount_cents},
                )
            return {}
        return {"payment_amount_cents": int(amount_cents)}


def _coerce(enum_type, value, label: str):
    try:
        return enum_type(value)
    except ValueError:
        raise ValidationError(f"Unknown {label}: {value}")
