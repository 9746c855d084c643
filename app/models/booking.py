from decimal import Decimal
from sqlalchemy import String, DateTime, Numeric
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

BOOKING_PENDING = "pending"
BOOKING_PAID = "paid"

class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    customer_name: Mapped[str] = mapped_column(String(200))
    customer_email: Mapped[str] = mapped_column(String(320), index=True)
    date_str: Mapped[str] = mapped_column(String(10), index=True)  # YYYY-MM-DD
    time_slot: Mapped[str] = mapped_column(String(10))             # HH:MM
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    amount_paid: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)  # major units, from Stripe amount_total
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    # Stripe checkout session id; the dedup key for webhook deliveries
    provider_session_id: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)

    status: Mapped[str] = mapped_column(String(20), default=BOOKING_PENDING)  # pending, paid

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
