from __future__ import annotations

import logging

from bookings.application.ports.payment_links import PaymentLink, PaymentLinkPort


class MockPaymentLinks(PaymentLinkPort):
    def __init__(self) -> None:
        self.created: list[dict] = []
        self._logger = logging.getLogger(__name__)

    def create_link(
        self,
        amount_cents: int,
        description: str,
        customer_name: str | None = None,
        customer_email: str | None = None,
        reference: str | None = None,
    ) -> PaymentLink:
        link_id = f"mock_plink_{len(self.created) + 1}"
        self.created.append({"id": link_id, "amount_cents": amount_cents, "description": description})
        self._logger.info("Mock payment link created", extra={"link_id": link_id, "amount_cents": amount_cents})
        return PaymentLink(url=f"https://pay.example.test/{link_id}", id=link_id)
