from pydantic import BaseModel
from typing import Optional, Union


class CheckoutSessionCreate(BaseModel):
    # Everything optional here: missing fields are reported together as a 400, not a 422.
    nome: Optional[str] = None
    email: Optional[str] = None
    data_agendamento: Optional[str] = None
    horario: Optional[str] = None
    preco: Optional[Union[float, int, str]] = None
    descricao: Optional[str] = None


class CheckoutSessionOut(BaseModel):
    url: str
    id: str


class PaymentStatusOut(BaseModel):
    status: Optional[str] = None
    email: Optional[str] = None
    metadata: dict[str, str] = {}


class WebhookAck(BaseModel):
    received: bool = True
