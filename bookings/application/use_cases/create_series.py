from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable

from bookings.application.dto.create_series import CreateSeriesCommand, CreateSeriesResult
from bookings.application.exceptions import BestEffortFailure, BookingError, NotFoundError, PersistenceError
from bookings.application.ports.booking_store import BookingStorePort
from bookings.application.ports.lead_store import LeadStorePort
from bookings.application.utils.materializer import materialize, to_utc
from bookings.application.utils.recurrence import expand
from bookings.core.config import settings
from bookings.domain.entities.booking_series import BookingSeries, SeriesStatus


class CreateSeriesUseCase:
    """
    Create a booking series and its full batch of occurrences against the store.

    Order is fixed: lead check -> series insert -> occurrence batch insert ->
    lead status update. A failed batch insert deletes the series before the error
    is raised, so a series is never left without occurrences. The lead status
    update is best-effort and only produces a warning.
    """

    def __init__(
        self,
        store: BookingStorePort,
        leads: LeadStorePort,
        won_status: str | None = None,
        id_factory: Callable[[], str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._leads = leads
        self._won_status = won_status or settings.LEAD_WON_STATUS
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._logger = logging.getLogger(__name__)

    def execute(self, command: CreateSeriesCommand) -> CreateSeriesResult:
        if not self._leads.exists(command.lead_id):
            raise NotFoundError("Lead not found")

        series = self._store.insert_series(
            BookingSeries(
                id=self._new_id(),
                lead_id=command.lead_id,
                title=command.title,
                timezone=command.timezone,
                starts_at=to_utc(command.starts_at),
                duration_minutes=command.duration_minutes,
                repeat_type=command.repeat_type,
                until_date=command.until_date,
                occurrence_count=command.occurrence_count,
                notes=command.notes,
                status=SeriesStatus.active,
                created_at=self._clock(),
            )
        )
        self._logger.info("Booking series created", extra={"series_id": series.id, "lead_id": series.lead_id})

        end_bound, max_count = command.termination()
        dates = expand(command.starts_at, command.repeat_type, end_bound, max_count)
        occurrences = materialize(series.id, dates, command.duration_minutes, id_factory=self._new_id)

        try:
            created = self._store.insert_occurrences(occurrences)
        except Exception as e:
            self._compensate(series, e)
            if isinstance(e, BookingError):
                raise
            raise PersistenceError(str(e) or "Failed to create booking occurrences") from e

        count = len(created) or len(occurrences)
        self._logger.info(
            "Booking occurrences created",
            extra={"series_id": series.id, "count": count},
        )

        warnings: list[BestEffortFailure] = []
        lead_updated = False
        if command.update_lead_status:
            lead_updated = self._mark_lead_won(command.lead_id, warnings)

        return CreateSeriesResult(
            series=series,
            occurrences_created=count,
            lead_status_updated=lead_updated,
            warnings=tuple(warnings),
            path="direct",
        )

    def _compensate(self, series: BookingSeries, cause: Exception) -> None:
        self._logger.error(
            "Occurrence batch insert failed, deleting series",
            extra={"series_id": series.id, "error": str(cause)},
        )
        try:
            self._store.delete_series(series.id)
        except Exception as e:
            self._logger.critical(
                "Compensation failed, series left without occurrences",
                extra={"series_id": series.id, "error": str(e)},
            )
            raise PersistenceError(
                f"Failed to create booking occurrences and could not remove series {series.id}: {e}"
            ) from cause

    def _mark_lead_won(self, lead_id: str, warnings: list[BestEffortFailure]) -> bool:
        try:
            self._leads.update_status(lead_id, self._won_status)
            return True
        except Exception as e:
            self._logger.warning(
                "Lead status update failed (booking kept)",
                extra={"lead_id": lead_id, "error": str(e)},
            )
            warnings.append(BestEffortFailure(f"Lead status was not updated: {e}"))
            return False
