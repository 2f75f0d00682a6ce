from fastapi import APIRouter, Depends

from bookings.api.errors import error_response
from bookings.api.v1.schemas import (
    MarkPaidSchema, NotesSchema, OccurrenceSchema,
    PaymentLinkRequestSchema, PaymentReminderRequestSchema, PaymentReminderResponseSchema,
    PaymentStatusChangeSchema, RescheduleSchema, StatusChangeSchema,
)
from bookings.application.exceptions import BookingError
from bookings.application.use_cases.occurrence_lifecycle import OccurrenceLifecycleUseCase
from bookings.application.use_cases.payment_reminder import PaymentReminderUseCase
from bookings.wiring.dependencies import get_occurrence_lifecycle_use_case, get_payment_reminder_use_case

router = APIRouter(prefix="/occurrences")


def _dump(occurrence) -> dict:
    return OccurrenceSchema.from_entity(occurrence).model_dump(mode="json", by_alias=True)


@router.post("/{occurrence_id}/status")
def change_status(
    occurrence_id: str,
    req: StatusChangeSchema,
    uc: OccurrenceLifecycleUseCase = Depends(get_occurrence_lifecycle_use_case),
):
    try:
        return _dump(uc.change_status(occurrence_id, req.status))
    except BookingError as e:
        return error_response(e)


@router.post("/{occurrence_id}/reschedule")
def reschedule(
    occurrence_id: str,
    req: RescheduleSchema,
    uc: OccurrenceLifecycleUseCase = Depends(get_occurrence_lifecycle_use_case),
):
    try:
        return _dump(uc.reschedule(occurrence_id, req.start_at))
    except BookingError as e:
        return error_response(e)


@router.post("/{occurrence_id}/notes")
def update_notes(
    occurrence_id: str,
    req: NotesSchema,
    uc: OccurrenceLifecycleUseCase = Depends(get_occurrence_lifecycle_use_case),
):
    try:
        return _dump(uc.update_notes(occurrence_id, req.notes))
    except BookingError as e:
        return error_response(e)


@router.post("/{occurrence_id}/payment-status")
def set_payment_status(
    occurrence_id: str,
    req: PaymentStatusChangeSchema,
    uc: OccurrenceLifecycleUseCase = Depends(get_occurrence_lifecycle_use_case),
):
    try:
        return _dump(uc.set_payment_status(occurrence_id, req.payment_status, amount_cents=req.amount_cents))
    except BookingError as e:
        return error_response(e)


@router.post("/{occurrence_id}/mark-paid")
def mark_paid(
    occurrence_id: str,
    req: MarkPaidSchema | None = None,
    uc: OccurrenceLifecycleUseCase = Depends(get_occurrence_lifecycle_use_case),
):
    try:
        return _dump(uc.mark_paid(occurrence_id, amount_cents=req.amount_cents if req else None))
    except BookingError as e:
        return error_response(e)


@router.post("/{occurrence_id}/payment-link")
def create_payment_link(
    occurrence_id: str,
    req: PaymentLinkRequestSchema,
    uc: OccurrenceLifecycleUseCase = Depends(get_occurrence_lifecycle_use_case),
):
    try:
        occurrence = uc.create_payment_link(
            occurrence_id,
            description=req.description,
            manual_amount=req.amount,
            quoted_total=req.quoted_total,
            customer_name=req.customer_name,
            customer_email=req.customer_email,
        )
    except BookingError as e:
        return error_response(e)
    return _dump(occurrence)


@router.post("/{occurrence_id}/payment-reminder")
def send_payment_reminder(
    occurrence_id: str,
    req: PaymentReminderRequestSchema | None = None,
    uc: PaymentReminderUseCase = Depends(get_payment_reminder_use_case),
):
    try:
        result = uc.execute(
            occurrence_id,
            template=req.template if req else None,
            quoted_total=req.quoted_total if req else None,
        )
    except BookingError as e:
        return error_response(e)
    return PaymentReminderResponseSchema(
        phone=result.phone, body=result.body, amount_cents=result.amount_cents
    ).model_dump(mode="json", by_alias=True)
