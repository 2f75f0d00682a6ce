from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class PaymentLink:
    url: str
    id: str


class PaymentLinkPort(ABC):
    @abstractmethod
    def create_link(
        self,
        amount_cents: int,
        description: str,
        customer_name: str | None = None,
        customer_email: str | None = None,
        reference: str | None = None,
    ) -> PaymentLink:
        """Create a hosted payment link. Raises ExternalServiceError on failure."""
        raise NotImplementedError
