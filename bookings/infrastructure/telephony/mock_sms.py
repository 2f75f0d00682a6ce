from __future__ import annotations

import logging

from bookings.application.ports.telephony import TelephonyPort


class MockSms(TelephonyPort):
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self._logger = logging.getLogger(__name__)

    def send_sms(self, phone: str, message: str) -> None:
        self.sent.append((phone, message))
        self._logger.info("Mock SMS send", extra={"phone": phone, "text": message})
