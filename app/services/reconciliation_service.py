"""Turns verified Stripe ``checkout.session.completed`` deliveries into paid bookings.

Stripe delivers webhooks at least once, so the checkout session id is the
idempotency key: the first delivery inserts the booking (plus its confirmation
email in the outbox) and every later delivery for the same session is a no-op
that still acknowledges. The unique index on ``bookings.provider_session_id`` is
what guarantees this under concurrent deliveries; the lookup before the insert
only saves a round trip.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from sqlalchemy.orm import Session

from app.core.errors import BookingConflict, StoreError
from app.models.booking import Booking
from app.schemas.stripe_events import CheckoutSessionCompleted, IgnoredEvent, parse_event
from app.services.audit_service import log_audit
from app.services.booking_service import find_by_provider_session_id, insert_paid_booking
from app.services.email_service import queue_email, render_booking_confirmation
from app.services.stripe_gateway import StripeGateway

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"


@dataclass
class ReconcileResult:
    outcome: Outcome
    event_type: str
    booking: Booking | None = None
    email_id: str | None = None  # set only when a confirmation still has to be delivered


def minor_to_major(amount_minor: int) -> Decimal:
    return (Decimal(amount_minor) / 100).quantize(Decimal("0.01"))


def handle_notification(db: Session, gateway: StripeGateway, payload: bytes, sig_header: str | None) -> ReconcileResult:
    """Verify, parse and commit one webhook delivery.

    Raises SignatureInvalid / PayloadMalformed (reject, 400) or StoreError (500, Stripe retries).
    """
    data = gateway.verify_event(payload, sig_header)
    event = parse_event(data)
    logger.info("Stripe event %s (%s) verified", event.id, event.type)

    if isinstance(event, IgnoredEvent):
        logger.info("Ignoring Stripe event type %s", event.type)
        return ReconcileResult(outcome=Outcome.IGNORED, event_type=event.type)
    return reconcile_checkout_completed(db, event)


def reconcile_checkout_completed(db: Session, event: CheckoutSessionCompleted) -> ReconcileResult:
    session = event.session
    existing = find_by_provider_session_id(db, session.id)
    if existing:
        logger.info("Duplicate delivery for session %s; booking %s already recorded", session.id, existing.id)
        return ReconcileResult(outcome=Outcome.DUPLICATE, event_type=event.type, booking=existing)

    meta = session.metadata
    queued: list[str] = []

    def _stage(db: Session, booking: Booking) -> None:
        log_audit(db, actor="stripe", action="booking.paid_webhook", entity_type="booking", entity_id=booking.id,
                  details={"event_id": event.id, "session_id": session.id, "amount_total": session.amount_total, "currency": session.currency})
        subject, html_body = render_booking_confirmation(booking)
        queued.append(queue_email(db, booking.customer_email, subject, html_body, related_booking_id=booking.id))

    try:
        booking = insert_paid_booking(
            db,
            session_id=session.id,
            customer_name=meta.nome,
            customer_email=session.booking_email,
            date_str=meta.data_agendamento,
            time_slot=meta.horario,
            description=meta.descricao,
            amount_paid=minor_to_major(session.amount_total),
            currency=session.currency,
            stage=_stage,
        )
    except BookingConflict as e:
        # Lost the race against a concurrent delivery of the same event.
        winner = find_by_provider_session_id(db, session.id)
        if winner is None:
            # Unique violation that no committed row explains; let Stripe retry.
            raise StoreError(f"conflict on session {session.id} but no booking found") from e
        logger.info("Concurrent delivery for session %s already committed as booking %s", session.id, winner.id)
        return ReconcileResult(outcome=Outcome.DUPLICATE, event_type=event.type, booking=winner)

    logger.info("Booking %s committed as paid for session %s (%s %s)", booking.id, session.id, booking.amount_paid, booking.currency)
    return ReconcileResult(outcome=Outcome.CREATED, event_type=event.type, booking=booking, email_id=queued[-1] if queued else None)
