from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class OccurrenceStatus(str, Enum):
    scheduled = "scheduled"
    completed = "completed"
    cancelled = "cancelled"


class PaymentStatus(str, Enum):
    waiting_payment = "waiting_payment"
    invoice_sent = "invoice_sent"
    paid = "paid"


@dataclass(frozen=True)
class BookingOccurrence:
    id: str
    series_id: str
    start_at: datetime
    end_at: datetime
    status: OccurrenceStatus = OccurrenceStatus.scheduled
    original_start_at: datetime | None = None  # set on first reschedule only
    notes: str | None = None
    payment_status: PaymentStatus = PaymentStatus.waiting_payment
    payment_link: str | None = None
    payment_amount_cents: int | None = None
    payment_notes: str | None = None
    payment_paid_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.series_id:
            raise ValueError("BookingOccurrence requires a series_id")
        if self.end_at <= self.start_at:
            raise ValueError("end_at must be after start_at")
        if self.payment_amount_cents is not None and self.payment_amount_cents <= 0:
            raise ValueError("payment_amount_cents must be positive when present")
        if self.payment_link and self.payment_status == PaymentStatus.waiting_payment:
            raise ValueError("an occurrence with a payment link cannot be waiting_payment")

    @property
    def duration(self):
        return self.end_at - self.start_at
