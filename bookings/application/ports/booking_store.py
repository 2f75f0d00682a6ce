from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from bookings.domain.entities.booking_occurrence import BookingOccurrence
from bookings.domain.entities.booking_series import BookingSeries


class BookingStorePort(ABC):
    """Persistence for series and their occurrences. Failures raise PersistenceError."""

    @abstractmethod
    def insert_series(self, series: BookingSeries) -> BookingSeries:
        raise NotImplementedError

    @abstractmethod
    def insert_occurrences(self, occurrences: list[BookingOccurrence]) -> list[BookingOccurrence]:
        """Insert the whole batch or nothing."""
        raise NotImplementedError

    @abstractmethod
    def get_series(self, series_id: str) -> BookingSeries | None:
        raise NotImplementedError

    @abstractmethod
    def update_series(self, series_id: str, changes: dict[str, Any]) -> BookingSeries:
        raise NotImplementedError

    @abstractmethod
    def delete_series(self, series_id: str) -> None:
        """Delete a series and every occurrence it owns."""
        raise NotImplementedError

    @abstractmethod
    def get_occurrence(self, occurrence_id: str) -> BookingOccurrence | None:
        raise NotImplementedError

    @abstractmethod
    def list_occurrences(self, series_id: str) -> list[BookingOccurrence]:
        """Occurrences of a series ordered by start_at."""
        raise NotImplementedError

    @abstractmethod
    def update_occurrence(self, occurrence_id: str, changes: dict[str, Any]) -> BookingOccurrence:
        """Apply all changes in a single row update."""
        raise NotImplementedError
