import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from app.core.config import settings
from app.core.errors import BookingValidationError
from app.schemas.booking import invalid_booking_fields
from app.schemas.payments import CheckoutSessionCreate
from app.services.stripe_gateway import CheckoutSessionRef, StripeGateway

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("nome", "email", "data_agendamento", "horario", "preco")


@dataclass
class ValidatedCheckout:
    customer_name: str
    customer_email: str
    date_str: str
    time_slot: str
    price_minor: int  # cents
    description: str

    def metadata(self) -> dict[str, str]:
        """Correlation payload; everything the webhook needs to rebuild the booking."""
        return {
            "nome": self.customer_name,
            "email": self.customer_email,
            "data_agendamento": self.date_str,
            "horario": self.time_slot,
            "descricao": self.description,
        }


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return not value


def to_minor_units(price) -> int:
    """Major units (19.999) to integer minor units (2000), rounding half up."""
    try:
        amount = Decimal(str(price).strip())
    except InvalidOperation as e:
        raise BookingValidationError(invalid=["preco"], message="Preço inválido") from e
    if not amount.is_finite() or amount < 0:
        raise BookingValidationError(invalid=["preco"], message="Preço inválido")
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def validate_checkout_request(body: CheckoutSessionCreate) -> ValidatedCheckout:
    """Raises BookingValidationError listing missing fields, or else the fields no booking row could hold."""
    missing = [f for f in REQUIRED_FIELDS if _is_blank(getattr(body, f))]
    if missing:
        raise BookingValidationError(missing)
    intent = ValidatedCheckout(
        customer_name=body.nome.strip(),
        customer_email=body.email.strip(),
        date_str=body.data_agendamento.strip(),
        time_slot=body.horario.strip(),
        price_minor=0,
        description=(body.descricao or "").strip() or settings.BOOKING_DEFAULT_DESCRIPTION,
    )
    # The webhook stores these verbatim after payment, so reject now what the table would refuse then.
    invalid = invalid_booking_fields(intent.customer_name, intent.customer_email, intent.date_str, intent.time_slot, intent.description)
    try:
        intent.price_minor = to_minor_units(body.preco)
    except BookingValidationError as e:
        invalid.extend(e.invalid)
    if invalid:
        raise BookingValidationError(invalid=invalid)
    return intent


def redirect_urls(base_url: str) -> tuple[str, str]:
    base = base_url.rstrip("/")
    return (
        f"{base}/sucesso.html?session_id={{CHECKOUT_SESSION_ID}}",
        f"{base}/cancelado.html",
    )


def build_checkout_intent(gateway: StripeGateway, body: CheckoutSessionCreate, *, success_url: str, cancel_url: str) -> CheckoutSessionRef:
    """Validate the request and open a Stripe Checkout session for it.

    Raises BookingValidationError before Stripe is contacted, ProviderError if Stripe fails.
    """
    intent = validate_checkout_request(body)
    session = gateway.create_checkout_session(
        product_name=f"{intent.description} - {intent.date_str} {intent.time_slot}",
        unit_amount=intent.price_minor,
        customer_email=intent.customer_email,
        success_url=success_url,
        cancel_url=cancel_url,
        metadata=intent.metadata(),
    )
    logger.info("Checkout session %s created for %s on %s %s", session.id, intent.customer_email, intent.date_str, intent.time_slot)
    return session


def get_payment_status(gateway: StripeGateway, session_id: str) -> dict:
    session = gateway.retrieve_session(session_id)
    details = getattr(session, "customer_details", None)
    email = getattr(details, "email", None) if details else None
    return {
        "status": getattr(session, "payment_status", None),
        "email": email or getattr(session, "customer_email", None),
        "metadata": dict(getattr(session, "metadata", None) or {}),
    }
