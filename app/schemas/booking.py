import re
from datetime import date, datetime
from pydantic import BaseModel, Field, field_validator
from typing import Optional

# Column sizes of the bookings table (app/models/booking.py)
NAME_MAX = 200
EMAIL_MAX = 320
DESCRIPTION_MAX = 255

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII)
_TIME_SLOT_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$", re.ASCII)


def is_iso_date(value: str) -> bool:
    """YYYY-MM-DD naming a real calendar day."""
    if not _DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_time_slot(value: str) -> bool:
    """24h HH:MM."""
    return bool(_TIME_SLOT_RE.match(value))


def invalid_booking_fields(nome: str, email: str, data_agendamento: str, horario: str, descricao: str | None) -> list[str]:
    """Names of the fields that would not fit a bookings row, in request order."""
    invalid = []
    if len(nome) > NAME_MAX:
        invalid.append("nome")
    if len(email) > EMAIL_MAX:
        invalid.append("email")
    if not is_iso_date(data_agendamento):
        invalid.append("data_agendamento")
    if not is_time_slot(horario):
        invalid.append("horario")
    if descricao is not None and len(descricao) > DESCRIPTION_MAX:
        invalid.append("descricao")
    return invalid


class BookingCreate(BaseModel):
    nome: str = Field(min_length=1, max_length=NAME_MAX)
    email: str = Field(min_length=1, max_length=EMAIL_MAX)  # plain str to allow .local and other dev domains
    data_agendamento: str
    horario: str
    descricao: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX)

    @field_validator("data_agendamento")
    @classmethod
    def check_date(cls, v: str) -> str:
        v = v.strip()
        if not is_iso_date(v):
            raise ValueError("data_agendamento must be a date in YYYY-MM-DD format")
        return v

    @field_validator("horario")
    @classmethod
    def check_time_slot(cls, v: str) -> str:
        v = v.strip()
        if not is_time_slot(v):
            raise ValueError("horario must be a time in HH:MM format")
        return v


class BookingOut(BaseModel):
    id: str
    nome: str
    email: str
    data_agendamento: str
    horario: str
    descricao: Optional[str] = None
    status: str
    valor_pago: Optional[float] = None
    moeda: Optional[str] = None
    stripe_session_id: Optional[str] = None
    criado_em: Optional[datetime] = None

    @classmethod
    def from_booking(cls, b) -> "BookingOut":
        return cls(
            id=b.id,
            nome=b.customer_name,
            email=b.customer_email,
            data_agendamento=b.date_str,
            horario=b.time_slot,
            descricao=b.description,
            status=b.status,
            valor_pago=float(b.amount_paid) if b.amount_paid is not None else None,
            moeda=b.currency,
            stripe_session_id=b.provider_session_id,
            criado_em=b.created_at,
        )
