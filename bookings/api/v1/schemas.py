from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bookings.application.dto.create_series import CreateSeriesResult
from bookings.application.use_cases.occurrence_lifecycle import display_payment_status
from bookings.domain.entities.booking_occurrence import BookingOccurrence, OccurrenceStatus, PaymentStatus
from bookings.domain.entities.booking_series import BookingSeries, SeriesStatus
from bookings.domain.entities.repeat_policy import RepeatType


class CamelSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateSeriesRequestSchema(CamelSchema):
    lead_id: str = Field(min_length=1)
    starts_at: str = Field(min_length=1)
    duration_minutes: int = Field(default=120, gt=0)
    repeat_type: RepeatType = RepeatType.none
    until_date: str | None = None
    occurrence_count: int | None = Field(default=None, gt=0)
    title: str | None = None
    notes: str | None = None
    timezone: str | None = None
    update_lead_status: bool = True


class SeriesSchema(CamelSchema):
    id: str
    lead_id: str
    title: str
    timezone: str
    starts_at: datetime
    duration_minutes: int
    repeat_type: RepeatType
    until_date: date | None = None
    occurrence_count: int | None = None
    notes: str | None = None
    status: SeriesStatus

    @staticmethod
    def from_entity(series: BookingSeries) -> "SeriesSchema":
        return SeriesSchema(
            id=series.id,
            lead_id=series.lead_id,
            title=series.title,
            timezone=series.timezone,
            starts_at=series.starts_at,
            duration_minutes=series.duration_minutes,
            repeat_type=series.repeat_type,
            until_date=series.until_date,
            occurrence_count=series.occurrence_count,
            notes=series.notes,
            status=series.status,
        )


class CreateSeriesResponseSchema(CamelSchema):
    series: SeriesSchema
    occurrences_created_count: int
    lead_status_updated: bool = False
    warnings: list[str] = Field(default_factory=list)
    path: str = "direct"

    @staticmethod
    def from_result(result: CreateSeriesResult) -> "CreateSeriesResponseSchema":
        return CreateSeriesResponseSchema(
            series=SeriesSchema.from_entity(result.series),
            occurrences_created_count=result.occurrences_created,
            lead_status_updated=result.lead_status_updated,
            warnings=[str(w) for w in result.warnings],
            path=result.path,
        )


class OccurrenceSchema(CamelSchema):
    id: str
    series_id: str
    start_at: datetime
    end_at: datetime
    original_start_at: datetime | None = None
    status: OccurrenceStatus
    notes: str | None = None
    payment_status: PaymentStatus
    payment_link: str | None = None
    payment_amount_cents: int | None = None
    payment_notes: str | None = None
    payment_paid_at: datetime | None = None
    display_payment_status: PaymentStatus

    @staticmethod
    def from_entity(occurrence: BookingOccurrence, quote_paid_by_card: bool = False) -> "OccurrenceSchema":
        return OccurrenceSchema(
            id=occurrence.id,
            series_id=occurrence.series_id,
            start_at=occurrence.start_at,
            end_at=occurrence.end_at,
            original_start_at=occurrence.original_start_at,
            status=occurrence.status,
            notes=occurrence.notes,
            payment_status=occurrence.payment_status,
            payment_link=occurrence.payment_link,
            payment_amount_cents=occurrence.payment_amount_cents,
            payment_notes=occurrence.payment_notes,
            payment_paid_at=occurrence.payment_paid_at,
            display_payment_status=display_payment_status(occurrence, quote_paid_by_card),
        )


class StatusChangeSchema(CamelSchema):
    status: OccurrenceStatus


class RescheduleSchema(CamelSchema):
    start_at: datetime


class NotesSchema(CamelSchema):
    notes: str | None = None


class PaymentStatusChangeSchema(CamelSchema):
    payment_status: PaymentStatus
    amount_cents: int | None = Field(default=None, gt=0)


class MarkPaidSchema(CamelSchema):
    amount_cents: int | None = Field(default=None, gt=0)


class PaymentLinkRequestSchema(CamelSchema):
    description: str = "Cleaning service"
    amount: str | float | None = None
    quoted_total: str | float | None = None
    customer_name: str | None = None
    customer_email: str | None = None


class PaymentReminderRequestSchema(CamelSchema):
    template: str | None = None
    quoted_total: str | float | None = None


class PaymentReminderResponseSchema(CamelSchema):
    phone: str
    body: str
    amount_cents: int | None = None
