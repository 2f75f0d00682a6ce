from __future__ import annotations

import logging

import httpx

from bookings.application.exceptions import ExternalServiceError
from bookings.application.ports.telephony import TelephonyPort
from bookings.core.config import settings


class DialpadSmsClient(TelephonyPort):
    """Sends texts through the `dialpad-send-sms` function."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._base_url = (base_url or settings.SUPABASE_URL or "").rstrip("/")
        self._api_key = api_key or settings.SUPABASE_ANON_KEY
        self._client = http_client or httpx.Client(timeout=10.0)
        self._logger = logging.getLogger(__name__)

        if not self._base_url:
            raise ValueError("SUPABASE_URL is required for SMS")

    def send_sms(self, phone: str, message: str) -> None:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
            headers["Authorization"] = f"Bearer {self._api_key}"
        payload = {"to_numbers": [phone], "text": message}

        try:
            resp = self._client.post(f"{self._base_url}/functions/v1/dialpad-send-sms", json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"SMS service unreachable: {e}") from e

        if resp.status_code >= 400:
            try:
                error_message = resp.json().get("error")
            except Exception:
                error_message = resp.text
            self._logger.error(
                "SMS send failed",
                extra={"status": resp.status_code, "error": error_message, "text_length": len(message)},
            )
            raise ExternalServiceError(error_message or f"SMS send failed ({resp.status_code})")
