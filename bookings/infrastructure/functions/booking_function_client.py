from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx

from bookings.application.dto.create_series import CreateSeriesCommand, CreateSeriesResult
from bookings.application.exceptions import (
    BestEffortFailure,
    BookingError,
    NotFoundError,
    PersistenceError,
    RemoteTimeoutError,
    TransportError,
    ValidationError,
)
from bookings.application.ports.series_function import SeriesFunctionPort
from bookings.application.utils.materializer import to_utc
from bookings.core.config import settings
from bookings.domain.entities.booking_series import BookingSeries, SeriesStatus
from bookings.domain.entities.repeat_policy import RepeatType, from_rrule

FUNCTION_PATH = "/functions/v1/create-booking-series"
GATEWAY_STATUSES = {502, 503, 504}


class BookingFunctionClient(SeriesFunctionPort):
    """
    Calls the managed `create-booking-series` function over HTTP.

    Error classes:
    - RemoteTimeoutError: no answer within the timeout (outcome unknown)
    - TransportError: connection failures, CORS rejections, gateway errors
      and responses that carry no declared error
    - ValidationError / NotFoundError / PersistenceError / BookingError:
      errors the function itself declared
    - BookingError: a 2xx body without a series id or a positive occurrence count
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._base_url = (base_url or settings.SUPABASE_URL or "").rstrip("/")
        self._api_key = api_key or settings.SUPABASE_ANON_KEY
        self._timeout = timeout or settings.BOOKING_FUNCTION_TIMEOUT_SECONDS
        self._client = http_client or httpx.Client(timeout=self._timeout)
        self._logger = logging.getLogger(__name__)

        if not self._base_url:
            raise ValueError("SUPABASE_URL is required for the booking function client")

    def create_series(self, command: CreateSeriesCommand) -> CreateSeriesResult:
        url = f"{self._base_url}{FUNCTION_PATH}"
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
            headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            resp = self._client.post(url, json=command.to_payload(), headers=headers, timeout=self._timeout)
        except httpx.TimeoutException as e:
            raise RemoteTimeoutError(f"Booking function timed out after {self._timeout:.0f}s") from e
        except httpx.TransportError as e:
            raise TransportError(f"Booking function unreachable: {e}") from e

        body = _json_or_none(resp)
        error = body.get("error") if isinstance(body, dict) else None
        if error is not None:
            error = str(error)

        if resp.status_code >= 400 or error:
            raise _classify(resp.status_code, error)

        series = (body or {}).get("series") if isinstance(body, dict) else None
        if not isinstance(series, dict) or not series.get("id"):
            # a 2xx means the function ran, so this must not fall back
            raise BookingError("Booking function did not return a booking id")

        result = _to_result(body, series, command)
        self._logger.info(
            "Booking series created by remote function",
            extra={"series_id": result.series.id, "path": "remote"},
        )
        return result


def _json_or_none(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


def _classify(status: int, error: str | None) -> BookingError:
    if error is None or status in GATEWAY_STATUSES:
        return TransportError(error or f"Booking function failed ({status})")
    if status == 403 and "cors" in error.lower():
        return TransportError(error)
    if status == 400:
        return ValidationError(error)
    if status == 404:
        return NotFoundError(error)
    if status >= 500:
        return PersistenceError(error)
    return BookingError(error)


def _field(data: dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def _to_result(body: dict[str, Any], series: dict[str, Any], command: CreateSeriesCommand) -> CreateSeriesResult:
    repeat = series.get("repeatType") or series.get("repeat_type")
    repeat_type = RepeatType(repeat) if repeat else from_rrule(series.get("rrule"))
    starts_at = _field(series, "startsAt", "starts_at")

    count = _field(body, "occurrencesCreatedCount", "occurrences_created")
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise BookingError(f"Booking function reported an invalid occurrence count: {count!r}")
    warnings = tuple(BestEffortFailure(w) for w in body.get("warnings") or [])

    return CreateSeriesResult(
        series=BookingSeries(
            id=str(series["id"]),
            lead_id=str(_field(series, "leadId", "lead_id", command.lead_id)),
            title=series.get("title") or command.title,
            timezone=command.timezone,
            starts_at=(
                datetime.fromisoformat(starts_at.replace("Z", "+00:00")) if starts_at else to_utc(command.starts_at)
            ),
            duration_minutes=int(_field(series, "durationMinutes", "duration_minutes", command.duration_minutes)),
            repeat_type=repeat_type,
            until_date=command.until_date,
            occurrence_count=command.occurrence_count,
            notes=command.notes,
            status=SeriesStatus(series.get("status") or "active"),
        ),
        occurrences_created=count,
        lead_status_updated=bool(_field(body, "leadStatusUpdated", "lead_status_updated", command.update_lead_status)),
        warnings=warnings,
        path="remote",
    )
