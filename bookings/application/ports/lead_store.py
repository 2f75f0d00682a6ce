from abc import ABC, abstractmethod

from bookings.domain.entities.lead import Lead


class LeadStorePort(ABC):
    @abstractmethod
    def get_lead(self, lead_id: str) -> Lead | None:
        raise NotImplementedError

    @abstractmethod
    def update_status(self, lead_id: str, status: str | None) -> None:
        raise NotImplementedError

    def exists(self, lead_id: str) -> bool:
        return self.get_lead(lead_id) is not None
