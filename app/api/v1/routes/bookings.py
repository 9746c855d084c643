from typing import Literal
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.core.errors import StoreError
from app.schemas.booking import BookingCreate, BookingOut
from app.services.booking_service import ORDER_AGENDA, create_booking, list_bookings

router = APIRouter(tags=["bookings"])


@router.post("/agendamentos", response_model=BookingOut, status_code=201)
def create_direct_booking(body: BookingCreate, db: Session = Depends(get_db)):
    try:
        booking = create_booking(db, body)
    except StoreError:
        raise HTTPException(status_code=500, detail={"error": "Erro ao criar agendamento"})
    return BookingOut.from_booking(booking)


@router.get("/agendamentos", response_model=list[BookingOut])
def get_bookings(
    ordem: Literal["agenda", "recentes"] = Query(default=ORDER_AGENDA),
    db: Session = Depends(get_db),
):
    try:
        bookings = list_bookings(db, order=ordem)
    except StoreError:
        raise HTTPException(status_code=500, detail={"error": "Erro ao buscar agendamentos"})
    return [BookingOut.from_booking(b) for b in bookings]
