from fastapi import APIRouter, Depends, Query

from bookings.api.errors import error_response
from bookings.api.v1.schemas import (
    CreateSeriesRequestSchema, CreateSeriesResponseSchema,
    OccurrenceSchema, SeriesSchema,
)
from bookings.application.dto.create_series import CreateSeriesCommand
from bookings.application.exceptions import BookingError, NotFoundError
from bookings.application.ports.booking_store import BookingStorePort
from bookings.application.use_cases.dual_path import CreateSeriesStrategy
from bookings.application.use_cases.occurrence_lifecycle import OccurrenceLifecycleUseCase
from bookings.wiring.dependencies import (
    get_booking_store,
    get_create_series_strategy,
    get_occurrence_lifecycle_use_case,
)

router = APIRouter()


@router.post("/bookings", status_code=201)
def create_booking(
    req: CreateSeriesRequestSchema,
    strategy: CreateSeriesStrategy = Depends(get_create_series_strategy),
):
    try:
        command = CreateSeriesCommand.from_payload(
            lead_id=req.lead_id,
            starts_at=req.starts_at,
            duration_minutes=req.duration_minutes,
            repeat_type=req.repeat_type,
            until_date=req.until_date,
            occurrence_count=req.occurrence_count,
            title=req.title,
            notes=req.notes,
            timezone=req.timezone,
            update_lead_status=req.update_lead_status,
        )
        result = strategy.execute(command)
    except BookingError as e:
        return error_response(e)

    return CreateSeriesResponseSchema.from_result(result).model_dump(mode="json", by_alias=True)


@router.get("/series/{series_id}")
def get_series(series_id: str, store: BookingStorePort = Depends(get_booking_store)):
    series = store.get_series(series_id)
    if series is None:
        return error_response(NotFoundError("Series not found"))
    return SeriesSchema.from_entity(series).model_dump(mode="json", by_alias=True)


@router.get("/series/{series_id}/occurrences")
def list_occurrences(
    series_id: str,
    quote_paid_by_card: bool = Query(False, alias="quotePaidByCard"),
    store: BookingStorePort = Depends(get_booking_store),
):
    if store.get_series(series_id) is None:
        return error_response(NotFoundError("Series not found"))
    return [
        OccurrenceSchema.from_entity(o, quote_paid_by_card).model_dump(mode="json", by_alias=True)
        for o in store.list_occurrences(series_id)
    ]


@router.post("/series/{series_id}/cancel")
def cancel_series(
    series_id: str,
    uc: OccurrenceLifecycleUseCase = Depends(get_occurrence_lifecycle_use_case),
):
    try:
        series = uc.cancel_series(series_id)
    except BookingError as e:
        return error_response(e)
    return SeriesSchema.from_entity(series).model_dump(mode="json", by_alias=True)
