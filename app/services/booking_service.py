import uuid
import logging
from decimal import Decimal
from sqlalchemy.orm import Session
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.config import settings
from app.core.errors import BookingConflict, StoreError
from app.models.booking import Booking, BOOKING_PAID, BOOKING_PENDING
from app.schemas.booking import BookingCreate
from app.services.audit_service import log_audit

logger = logging.getLogger(__name__)

ORDER_AGENDA = "agenda"
ORDER_RECENT = "recentes"


def create_booking(db: Session, body: BookingCreate) -> Booking:
    """Direct (unpaid) booking, used for manual and test entries."""
    booking = Booking(
        id=str(uuid.uuid4()),
        customer_name=body.nome,
        customer_email=body.email,
        date_str=body.data_agendamento,
        time_slot=body.horario,
        description=body.descricao or settings.BOOKING_DEFAULT_DESCRIPTION,
        status=BOOKING_PENDING,
    )
    try:
        db.add(booking)
        log_audit(db, actor="public", action="booking.created", entity_type="booking", entity_id=booking.id)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Could not insert booking: %s", e)
        raise StoreError("could not insert booking") from e
    db.refresh(booking)
    return booking


def list_bookings(db: Session, order: str = ORDER_AGENDA) -> list[Booking]:
    stmt = select(Booking)
    if order == ORDER_RECENT:
        stmt = stmt.order_by(Booking.created_at.desc())
    else:
        stmt = stmt.order_by(Booking.date_str.asc(), Booking.time_slot.asc())
    try:
        return list(db.execute(stmt).scalars().all())
    except SQLAlchemyError as e:
        logger.error("Could not list bookings: %s", e)
        raise StoreError("could not list bookings") from e


def find_by_provider_session_id(db: Session, session_id: str) -> Booking | None:
    try:
        return db.execute(
            select(Booking).where(Booking.provider_session_id == session_id)
        ).scalar_one_or_none()
    except SQLAlchemyError as e:
        raise StoreError("could not look up booking") from e


def insert_paid_booking(
    db: Session,
    *,
    session_id: str,
    customer_name: str,
    customer_email: str,
    date_str: str,
    time_slot: str,
    description: str | None,
    amount_paid: Decimal,
    currency: str | None,
    stage=None,
) -> Booking:
    """Insert a paid booking keyed by the Stripe session id, in one transaction.

    ``stage(db, booking)`` may add more rows (email outbox, audit) to the same commit.
    Raises BookingConflict when the unique index on provider_session_id rejects the row.
    """
    booking = Booking(
        id=str(uuid.uuid4()),
        customer_name=customer_name,
        customer_email=customer_email,
        date_str=date_str,
        time_slot=time_slot,
        description=description or settings.BOOKING_DEFAULT_DESCRIPTION,
        amount_paid=amount_paid,
        currency=currency,
        provider_session_id=session_id,
        status=BOOKING_PAID,
    )
    try:
        db.add(booking)
        db.flush()
        if stage is not None:
            stage(db, booking)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise BookingConflict(f"booking already recorded for session {session_id}") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Could not insert paid booking for session %s: %s", session_id, e)
        raise StoreError("could not insert booking") from e
    db.refresh(booking)
    return booking
