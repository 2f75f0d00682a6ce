from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from bookings.api.errors import error_response
from bookings.api.v1.schemas import CreateSeriesResponseSchema
from bookings.application.dto.create_series import CreateSeriesCommand
from bookings.application.exceptions import BookingError
from bookings.application.use_cases.create_series import CreateSeriesUseCase
from bookings.wiring.dependencies import get_create_series_use_case


router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/functions/v1/create-booking-series")
def create_booking_series(
    payload: dict[str, Any] | None = Body(default=None),
    uc: CreateSeriesUseCase = Depends(get_create_series_use_case),
):
    """
    Managed series-creation function. Every failure answers with `{"error": ...}`
    so callers can tell declared errors apart from gateway failures.
    """
    payload = payload or {}
    try:
        command = CreateSeriesCommand.from_payload(
            lead_id=payload.get("leadId"),
            starts_at=payload.get("startsAt"),
            duration_minutes=payload.get("durationMinutes"),
            repeat_type=payload.get("repeatType"),
            until_date=payload.get("untilDate"),
            occurrence_count=payload.get("occurrenceCount"),
            title=payload.get("title"),
            notes=payload.get("notes"),
            timezone=payload.get("timezone"),
            update_lead_status=payload.get("updateLeadStatus"),
        )
        result = uc.execute(command)
    except BookingError as e:
        return error_response(e)
    except (TypeError, ValueError) as e:
        logger.info("Rejected malformed function payload", extra={"error": str(e)})
        return JSONResponse(status_code=400, content={"error": str(e)})

    return CreateSeriesResponseSchema.from_result(result).model_dump(mode="json", by_alias=True)
