"""
Tests for payment reminders and the outbound payment/SMS function clients.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from bookings.application.exceptions import ExternalServiceError, NotFoundError, ValidationError
from bookings.application.use_cases.payment_reminder import PaymentReminderUseCase, render_template
from bookings.domain.entities.booking_occurrence import BookingOccurrence, OccurrenceStatus, PaymentStatus
from bookings.domain.entities.booking_series import BookingSeries
from bookings.domain.entities.lead import Lead
from bookings.infrastructure.payments.payment_link_client import PaymentLinkFunctionClient
from bookings.infrastructure.store.memory_store import MemoryBookingStore, MemoryLeadStore
from bookings.infrastructure.telephony.mock_sms import MockSms
from bookings.infrastructure.telephony.sms_client import DialpadSmsClient

START = datetime(2025, 3, 9, 22, 0, tzinfo=timezone.utc)


def _setup(phone="+61400000000", **occurrence_fields):
    store = MemoryBookingStore()
    store.insert_series(
        BookingSeries(
            id="series-1",
            lead_id="lead-1",
            title="Regular clean",
            timezone="Australia/Sydney",
            starts_at=START,
            duration_minutes=120,
        )
    )
    store.insert_occurrences([
        BookingOccurrence(
            id="occ-0",
            series_id="series-1",
            start_at=START,
            end_at=START + timedelta(minutes=120),
            status=OccurrenceStatus.completed,
            **occurrence_fields,
        )
    ])
    leads = MemoryLeadStore([Lead(id="lead-1", name="Jane Smith", phone=phone)])
    sms = MockSms()
    return PaymentReminderUseCase(store=store, leads=leads, telephony=sms), sms


def test_render_template_fills_known_and_blanks_unknown():
    text = render_template("Hi {{ name }}, {{missing}} total {{amount}}", {"name": "Jane", "amount": "$10.00"})

    assert text == "Hi Jane, total $10.00"


def test_reminder_uses_link_and_stored_amount():
    uc, sms = _setup(
        payment_status=PaymentStatus.invoice_sent,
        payment_link="https://pay.example.test/plink_1",
        payment_amount_cents=18000,
    )

    result = uc.execute("occ-0")

    assert result.phone == "+61400000000"
    assert result.amount_cents == 18000
    assert "Hi Jane," in result.body
    assert "$180.00" in result.body
    assert "https://pay.example.test/plink_1" in result.body
    assert sms.sent == [("+61400000000", result.body)]


def test_reminder_falls_back_to_quoted_total():
    uc, _ = _setup()

    result = uc.execute("occ-0", template="{{name}} owes {{amount}}", quoted_total="99.5")

    assert result.body == "Jane owes $99.50"


def test_reminder_requires_phone():
    uc, sms = _setup(phone=None)

    with pytest.raises(ValidationError):
        uc.execute("occ-0")
    assert sms.sent == []


def test_reminder_for_missing_occurrence():
    uc, _ = _setup()

    with pytest.raises(NotFoundError):
        uc.execute("missing")


def test_payment_link_client_sends_minor_units():
    captured = {}

    def handler(request):
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"url": "https://buy.stripe.com/test_123", "id": "plink_123"})

    client = PaymentLinkFunctionClient(
        base_url="https://example.supabase.co",
        api_key="anon-key",
        currency="AUD",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )

    link = client.create_link(18000, "Regular clean", customer_name="Jane Smith", reference="occ-0")

    assert captured["path"] == "/functions/v1/create-payment-link"
    assert captured["body"]["amount_cents"] == 18000
    assert captured["body"]["currency"] == "aud"
    assert captured["body"]["quoteId"] == "occ-0"
    assert link.url == "https://buy.stripe.com/test_123"
    assert link.id == "plink_123"


def test_payment_link_client_failure():
    client = PaymentLinkFunctionClient(
        base_url="https://example.supabase.co",
        http_client=httpx.Client(
            transport=httpx.MockTransport(lambda request: httpx.Response(500, json={"error": "Stripe is down"}))
        ),
    )

    with pytest.raises(ExternalServiceError, match="Stripe is down"):
        client.create_link(18000, "Regular clean")


@pytest.mark.parametrize("body", [["https://buy.stripe.com/test_123"], "ok", None])
def test_payment_link_client_rejects_non_object_body(body):
    client = PaymentLinkFunctionClient(
        base_url="https://example.supabase.co",
        http_client=httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=body))),
    )

    with pytest.raises(ExternalServiceError, match="Failed to create Stripe link"):
        client.create_link(18000, "Regular clean")


def test_sms_client_posts_dialpad_payload():
    captured = {}

    def handler(request):
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"ok": True})

    client = DialpadSmsClient(
        base_url="https://example.supabase.co",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )

    client.send_sms("+61400000000", "Hello")

    assert captured["body"] == {"to_numbers": ["+61400000000"], "text": "Hello"}


def test_sms_client_failure():
    client = DialpadSmsClient(
        base_url="https://example.supabase.co",
        http_client=httpx.Client(
            transport=httpx.MockTransport(lambda request: httpx.Response(401, json={"error": "Unauthorized"}))
        ),
    )

    with pytest.raises(ExternalServiceError, match="Unauthorized"):
        client.send_sms("+61400000000", "Hello")
