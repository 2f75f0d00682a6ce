from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from bookings.application.exceptions import NotFoundError, ValidationError
from bookings.application.ports.booking_store import BookingStorePort
from bookings.application.ports.lead_store import LeadStorePort
from bookings.application.ports.telephony import TelephonyPort
from bookings.application.utils.amounts import format_amount, resolve_amount_cents

DEFAULT_PAYMENT_TEMPLATE = (
    "Hi {{name}}, thanks for having us! Today's clean comes to {{amount}} inc GST. "
    "You can pay securely here: {{payment_link}}. Let me know if any questions."
)

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def render_template(template: str, values: dict[str, str]) -> str:
    """Fill {{placeholders}}; unknown ones render empty."""
    text = _PLACEHOLDER.sub(lambda m: values.get(m.group(1), ""), template)
    return re.sub(r"[ \t]{2,}", " ", text).strip()


@dataclass(frozen=True)
class ReminderResult:
    phone: str
    body: str
    amount_cents: int | None


class PaymentReminderUseCase:
    def __init__(self, store: BookingStorePort, leads: LeadStorePort, telephony: TelephonyPort) -> None:
        self._store = store
        self._leads = leads
        self._telephony = telephony
        self._logger = logging.getLogger(__name__)

    def execute(
        self,
        occurrence_id: str,
        template: str | None = None,
        quoted_total: str | float | None = None,
    ) -> ReminderResult:
        occurrence = self._store.get_occurrence(occurrence_id)
        if occurrence is None:
            raise NotFoundError("Occurrence not found")
        series = self._store.get_series(occurrence.series_id)
        if series is None:
            raise NotFoundError("Series not found")
        lead = self._leads.get_lead(series.lead_id)
        if lead is None:
            raise NotFoundError("Lead not found")
        if not lead.phone:
            raise ValidationError("Lead has no phone number")

        amount = resolve_amount_cents(None, occurrence.payment_amount_cents, quoted_total)
        body = render_template(
            template or DEFAULT_PAYMENT_TEMPLATE,
            {
                "name": (lead.name or "there").split(" ")[0],
                "amount": format_amount(amount),
                "payment_link": occurrence.payment_link or "",
            },
        )

        self._telephony.send_sms(phone=lead.phone, message=body)
        self._logger.info(
            "Payment reminder sent",
            extra={"occurrence_id": occurrence_id, "lead_id": lead.id},
        )
        return ReminderResult(phone=lead.phone, body=body, amount_cents=amount)
