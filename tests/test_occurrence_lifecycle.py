"""
Tests for occurrence scheduling and payment transitions.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from bookings.application.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from bookings.application.use_cases.occurrence_lifecycle import (
    OccurrenceLifecycleUseCase,
    can_transition,
    display_payment_status,
)
from bookings.domain.entities.booking_occurrence import BookingOccurrence, OccurrenceStatus, PaymentStatus
from bookings.domain.entities.booking_series import BookingSeries, SeriesStatus
from bookings.infrastructure.payments.mock_payment_links import MockPaymentLinks
from bookings.infrastructure.store.memory_store import MemoryBookingStore

START = datetime(2025, 3, 9, 22, 0, tzinfo=timezone.utc)
NOW = datetime(2025, 3, 12, 1, 30, tzinfo=timezone.utc)


def _setup(status=OccurrenceStatus.scheduled, **occurrence_fields):
    store = MemoryBookingStore()
    store.insert_series(
        BookingSeries(
            id="series-1",
            lead_id="lead-1",
            title="Regular clean",
            timezone="Australia/Sydney",
            starts_at=START,
            duration_minutes=120,
        )
    )
    store.insert_occurrences([
        BookingOccurrence(
            id=f"occ-{i}",
            series_id="series-1",
            start_at=START + timedelta(days=7 * i),
            end_at=START + timedelta(days=7 * i, minutes=120),
            status=status,
            **occurrence_fields,
        )
        for i in range(3)
    ])
    links = MockPaymentLinks()
    uc = OccurrenceLifecycleUseCase(store=store, payment_links=links, clock=lambda: NOW)
    return uc, store, links


def test_scheduling_transitions_table():
    assert can_transition(OccurrenceStatus.scheduled, OccurrenceStatus.completed)
    assert can_transition(OccurrenceStatus.scheduled, OccurrenceStatus.cancelled)
    assert not can_transition(OccurrenceStatus.completed, OccurrenceStatus.scheduled)
    assert not can_transition(OccurrenceStatus.cancelled, OccurrenceStatus.completed)


def test_complete_and_cancel():
    uc, store, _ = _setup()

    assert uc.change_status("occ-0", "completed").status == OccurrenceStatus.completed
    assert uc.change_status("occ-1", OccurrenceStatus.cancelled).status == OccurrenceStatus.cancelled


def test_terminal_status_cannot_be_reopened():
    uc, _, _ = _setup(status=OccurrenceStatus.completed)

    with pytest.raises(InvalidTransitionError):
        uc.change_status("occ-0", "scheduled")


def test_same_status_is_a_no_op():
    uc, _, _ = _setup(status=OccurrenceStatus.cancelled)

    assert uc.change_status("occ-0", "cancelled").status == OccurrenceStatus.cancelled


def test_unknown_status_and_occurrence():
    uc, _, _ = _setup()

    with pytest.raises(ValidationError):
        uc.change_status("occ-0", "archived")
    with pytest.raises(NotFoundError):
        uc.change_status("missing", "completed")


def test_reschedule_keeps_duration_and_first_original_start():
    uc, _, _ = _setup()

    moved = uc.reschedule("occ-0", START + timedelta(days=1))
    moved_again = uc.reschedule("occ-0", START + timedelta(days=2))

    assert moved.original_start_at == START
    assert moved_again.original_start_at == START
    assert moved_again.start_at == START + timedelta(days=2)
    assert moved_again.duration == timedelta(minutes=120)


def test_reschedule_reads_naive_time_in_series_timezone():
    """09:00 entered for Monday 17 March is 09:00 Sydney, i.e. 22:00 UTC on the 16th."""
    uc, _, _ = _setup()

    moved = uc.reschedule("occ-0", datetime(2025, 3, 17, 9, 0))

    assert moved.start_at == datetime(2025, 3, 16, 22, 0, tzinfo=timezone.utc)
    assert moved.end_at == datetime(2025, 3, 17, 0, 0, tzinfo=timezone.utc)


def test_reschedule_keeps_aware_time_as_given():
    uc, _, _ = _setup()

    moved = uc.reschedule("occ-0", datetime(2025, 3, 17, 1, 0, tzinfo=timezone.utc))

    assert moved.start_at == datetime(2025, 3, 17, 1, 0, tzinfo=timezone.utc)


def test_reschedule_only_scheduled():
    uc, _, _ = _setup(status=OccurrenceStatus.completed)

    with pytest.raises(InvalidTransitionError):
        uc.reschedule("occ-0", START + timedelta(days=1))


def test_update_notes_trims_and_clears():
    uc, _, _ = _setup()

    assert uc.update_notes("occ-0", "  Key under mat ").notes == "Key under mat"
    assert uc.update_notes("occ-0", "   ").notes is None


def test_cancel_series_cancels_only_scheduled_occurrences():
    uc, store, _ = _setup()
    uc.change_status("occ-0", "completed")

    series = uc.cancel_series("series-1")

    assert series.status == SeriesStatus.cancelled
    statuses = [o.status for o in store.list_occurrences("series-1")]
    assert statuses == [OccurrenceStatus.completed, OccurrenceStatus.cancelled, OccurrenceStatus.cancelled]

    with pytest.raises(NotFoundError):
        uc.cancel_series("missing")


def test_payment_requires_completed_occurrence():
    uc, _, _ = _setup()

    with pytest.raises(InvalidTransitionError):
        uc.mark_paid("occ-0")
    with pytest.raises(InvalidTransitionError):
        uc.set_payment_status("occ-0", "invoice_sent")


def test_mark_paid_sets_timestamp_once():
    uc, _, _ = _setup(status=OccurrenceStatus.completed)

    paid = uc.mark_paid("occ-0", amount_cents=18000)
    again = uc.mark_paid("occ-0", amount_cents=99999)

    assert paid.payment_status == PaymentStatus.paid
    assert paid.payment_paid_at == NOW
    assert paid.payment_amount_cents == 18000
    assert paid.payment_notes.startswith("Marked paid manually on 2025-03-12 01:30")
    assert again == paid


def test_paid_is_terminal():
    uc, _, _ = _setup(status=OccurrenceStatus.completed)
    uc.set_payment_status("occ-0", "paid")

    with pytest.raises(InvalidTransitionError):
        uc.set_payment_status("occ-0", "waiting_payment")
    with pytest.raises(InvalidTransitionError):
        uc.create_payment_link("occ-0", description="Regular clean", manual_amount="180")


def test_payment_link_records_amount_and_moves_to_invoice_sent():
    uc, _, links = _setup(status=OccurrenceStatus.completed)

    occurrence = uc.create_payment_link("occ-0", description="Regular clean", quoted_total="245.50")

    assert occurrence.payment_status == PaymentStatus.invoice_sent
    assert occurrence.payment_link == "https://pay.example.test/mock_plink_1"
    assert occurrence.payment_amount_cents == 24550
    assert links.created[0]["amount_cents"] == 24550


def test_payment_link_needs_an_amount():
    uc, _, links = _setup(status=OccurrenceStatus.completed)

    with pytest.raises(ValidationError, match="Enter a valid amount"):
        uc.create_payment_link("occ-0", description="Regular clean", manual_amount="0")
    assert links.created == []


def test_status_change_keeps_link_amount():
    """Marking a linked occurrence paid with a different amount keeps the link's amount."""
    uc, _, _ = _setup(status=OccurrenceStatus.completed)
    uc.create_payment_link("occ-0", description="Regular clean", manual_amount="180")

    paid = uc.set_payment_status("occ-0", "paid", amount_cents=50000)

    assert paid.payment_amount_cents == 18000
    assert paid.payment_link is not None
    assert paid.payment_status == PaymentStatus.paid


def test_status_change_without_link_records_amount():
    uc, _, _ = _setup(status=OccurrenceStatus.completed)

    occurrence = uc.set_payment_status("occ-0", "invoice_sent", amount_cents=15000)

    assert occurrence.payment_amount_cents == 15000


def test_display_status_counts_card_paid_quote():
    uc, store, _ = _setup(status=OccurrenceStatus.completed)
    occurrence = store.get_occurrence("occ-0")

    assert display_payment_status(occurrence) == PaymentStatus.waiting_payment
    assert display_payment_status(occurrence, quote_paid_by_card=True) == PaymentStatus.paid
