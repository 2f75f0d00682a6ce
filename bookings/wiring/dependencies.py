from functools import lru_cache
import logging

from supabase import Client

from bookings.core.config import settings
from bookings.application.ports.booking_store import BookingStorePort
from bookings.application.ports.lead_store import LeadStorePort
from bookings.application.ports.payment_links import PaymentLinkPort
from bookings.application.ports.series_function import SeriesFunctionPort
from bookings.application.ports.telephony import TelephonyPort
from bookings.application.use_cases.create_series import CreateSeriesUseCase
from bookings.application.use_cases.dual_path import CreateSeriesStrategy
from bookings.application.use_cases.occurrence_lifecycle import OccurrenceLifecycleUseCase
from bookings.application.use_cases.payment_reminder import PaymentReminderUseCase
from bookings.infrastructure.functions.booking_function_client import BookingFunctionClient
from bookings.infrastructure.payments.mock_payment_links import MockPaymentLinks
from bookings.infrastructure.payments.payment_link_client import PaymentLinkFunctionClient
from bookings.infrastructure.store.memory_store import MemoryBookingStore, MemoryLeadStore
from bookings.infrastructure.store.supabase_client import create_supabase_client
from bookings.infrastructure.store.supabase_store import SupabaseBookingStore, SupabaseLeadStore
from bookings.infrastructure.telephony.mock_sms import MockSms
from bookings.infrastructure.telephony.sms_client import DialpadSmsClient


logger = logging.getLogger(__name__)

_booking_store: BookingStorePort | None = None
_lead_store: LeadStorePort | None = None


def _use_supabase() -> bool:
    return bool(settings.SUPABASE_URL and settings.SUPABASE_SERVICE_ROLE_KEY)


@lru_cache
def get_supabase_client() -> Client:
    return create_supabase_client()


def get_booking_store() -> BookingStorePort:
    global _booking_store
    if _booking_store is None:
        if _use_supabase():
            _booking_store = SupabaseBookingStore(get_supabase_client())
        else:
            logger.info("Using MemoryBookingStore (Supabase not configured, ENV=%s)", settings.ENV)
            _booking_store = MemoryBookingStore()
    return _booking_store


def get_lead_store() -> LeadStorePort:
    global _lead_store
    if _lead_store is None:
        if _use_supabase():
            _lead_store = SupabaseLeadStore(get_supabase_client())
        else:
            _lead_store = MemoryLeadStore()
    return _lead_store


def get_series_function() -> SeriesFunctionPort | None:
    if not settings.REMOTE_FUNCTION_ENABLED or not settings.SUPABASE_URL:
        return None
    return BookingFunctionClient()


@lru_cache
def get_payment_links() -> PaymentLinkPort:
    if not settings.SUPABASE_URL or settings.ENV.lower() in {"dev", "local"}:
        return MockPaymentLinks()
    return PaymentLinkFunctionClient()


@lru_cache
def get_telephony() -> TelephonyPort:
    if not settings.SUPABASE_URL or settings.ENV.lower() in {"dev", "local"}:
        logger.info("Using MockSms (ENV=%s)", settings.ENV)
        return MockSms()
    return DialpadSmsClient()


def get_create_series_use_case() -> CreateSeriesUseCase:
    return CreateSeriesUseCase(store=get_booking_store(), leads=get_lead_store())


def get_create_series_strategy() -> CreateSeriesStrategy:
    return CreateSeriesStrategy(direct=get_create_series_use_case(), remote=get_series_function())


def get_occurrence_lifecycle_use_case() -> OccurrenceLifecycleUseCase:
    return OccurrenceLifecycleUseCase(store=get_booking_store(), payment_links=get_payment_links())


def get_payment_reminder_use_case() -> PaymentReminderUseCase:
    return PaymentReminderUseCase(store=get_booking_store(), leads=get_lead_store(), telephony=get_telephony())
