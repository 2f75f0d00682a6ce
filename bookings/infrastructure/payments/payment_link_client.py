from __future__ import annotations

import logging

import httpx

from bookings.application.exceptions import ExternalServiceError
from bookings.application.ports.payment_links import PaymentLink, PaymentLinkPort
from bookings.core.config import settings


class PaymentLinkFunctionClient(PaymentLinkPort):
    """Creates Stripe payment links through the `create-payment-link` function."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        currency: str | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._base_url = (base_url or settings.SUPABASE_URL or "").rstrip("/")
        self._api_key = api_key or settings.SUPABASE_ANON_KEY
        self._currency = (currency or settings.PAYMENT_CURRENCY).lower()
        self._client = http_client or httpx.Client(timeout=15.0)
        self._logger = logging.getLogger(__name__)

        if not self._base_url:
            raise ValueError("SUPABASE_URL is required for payment links")

    def create_link(
        self,
        amount_cents: int,
        description: str,
        customer_name: str | None = None,
        customer_email: str | None = None,
        reference: str | None = None,
    ) -> PaymentLink:
        payload = {
            "amount_cents": int(amount_cents),
            "currency": self._currency,
            "description": description,
            "customerName": customer_name or "",
            "customerEmail": customer_email or "",
            "quoteId": reference or "",
        }
        if settings.PAYMENT_SUCCESS_URL:
            payload["success_url"] = settings.PAYMENT_SUCCESS_URL
        if settings.PAYMENT_CANCEL_URL:
            payload["cancel_url"] = settings.PAYMENT_CANCEL_URL

        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
            headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            resp = self._client.post(f"{self._base_url}/functions/v1/create-payment-link", json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Payment link service unreachable: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if resp.status_code >= 400 or not data.get("url"):
            message = str(data.get("error") or "Failed to create Stripe link")
            self._logger.error(
                "Payment link creation failed",
                extra={"status": resp.status_code, "error": message, "amount_cents": amount_cents},
            )
            raise ExternalServiceError(message)

        return PaymentLink(url=str(data["url"]), id=str(data.get("id") or ""))
