"""Validated shapes of the Stripe webhook events this service acts on.

Only ``checkout.session.completed`` carries a schema; every other event type
maps to :class:`IgnoredEvent` so new Stripe event kinds never fail a delivery.
"""
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from app.core.errors import PayloadMalformed
from app.schemas.booking import DESCRIPTION_MAX, EMAIL_MAX, NAME_MAX, is_iso_date, is_time_slot

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"


class BookingMetadata(BaseModel):
    """Correlation payload written by the intent builder (flat strings only).

    Held to the same limits as the bookings table so a bad payload is rejected
    instead of failing the insert on every redelivery.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    nome: str = Field(min_length=1, max_length=NAME_MAX)
    email: Optional[str] = Field(default=None, max_length=EMAIL_MAX)
    data_agendamento: str
    horario: str
    descricao: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX)

    @field_validator("data_agendamento")
    @classmethod
    def check_date(cls, v: str) -> str:
        if not is_iso_date(v):
            raise ValueError("not a YYYY-MM-DD date")
        return v

    @field_validator("horario")
    @classmethod
    def check_time_slot(cls, v: str) -> str:
        if not is_time_slot(v):
            raise ValueError("not an HH:MM time")
        return v


class CustomerDetails(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = None


class CheckoutSessionObject(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    amount_total: int = Field(ge=0)
    currency: Optional[str] = Field(default=None, max_length=3)
    customer_email: Optional[str] = None
    customer_details: Optional[CustomerDetails] = None
    metadata: BookingMetadata

    @property
    def payer_email(self) -> Optional[str]:
        if self.customer_details and self.customer_details.email:
            return self.customer_details.email
        return self.customer_email

    @property
    def booking_email(self) -> str:
        """Address the booking is made under; the one typed at checkout wins over Stripe's payer address."""
        return self.metadata.email or self.payer_email

    @model_validator(mode="after")
    def require_contact_email(self):
        email = self.booking_email
        if not email or not email.strip():
            raise ValueError("no customer email in metadata or customer details")
        if len(email) > EMAIL_MAX:
            raise ValueError("customer email too long")
        return self


class _CheckoutSessionData(BaseModel):
    object: CheckoutSessionObject


class CheckoutSessionCompleted(BaseModel):
    model_config = ConfigDict(extra="ignore")

    kind: Literal["checkout_completed"] = "checkout_completed"
    id: str
    type: Literal["checkout.session.completed"]
    data: _CheckoutSessionData

    @property
    def session(self) -> CheckoutSessionObject:
        return self.data.object


class IgnoredEvent(BaseModel):
    kind: Literal["ignored"] = "ignored"
    id: Optional[str] = None
    type: str


StripeEvent = Union[CheckoutSessionCompleted, IgnoredEvent]


def parse_event(payload: dict) -> StripeEvent:
    """Map a verified event payload onto the union above.

    Raises PayloadMalformed when a recognised event kind does not match its schema.
    """
    if not isinstance(payload, dict):
        raise PayloadMalformed("event payload is not an object")
    event_type = payload.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise PayloadMalformed("event payload has no type")

    if event_type != CHECKOUT_SESSION_COMPLETED:
        event_id = payload.get("id")
        return IgnoredEvent(id=event_id if isinstance(event_id, str) else None, type=event_type)

    try:
        return CheckoutSessionCompleted.model_validate(payload)
    except ValidationError as e:
        raise PayloadMalformed(f"{event_type}: {e.error_count()} invalid field(s): {e.errors(include_url=False)}") from e
