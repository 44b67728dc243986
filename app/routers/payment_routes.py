from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from crud.booking_crud import BookingAllocator, get_booking_allocator
from crud.payment_crud import payment_crud
from model import BookingStatusEnum
from schemas.payment_schema import PaymentCallback, PaymentCallbackOut, PaymentOut
from utils.ws_manager import ws_manager

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/callback", response_model=PaymentCallbackOut)
def payment_callback(
    cb: PaymentCallback,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    allocator: BookingAllocator = Depends(get_booking_allocator),
):
    """Gateway webhook: confirms the booking on SUCCESS, releases its hold on FAILED."""
    payment, booking, replayed = payment_crud.handle_callback(db, allocator, cb)
    if not replayed:
        event = "seat_booked" if booking.booking_status == BookingStatusEnum.PAID else "seat_released"
        background_tasks.add_task(ws_manager.broadcast_to_show, str(booking.show_id), {
            "type": event,
            "show_id": int(booking.show_id),
            "seat_numbers": list(booking.seat_numbers),
            "booking_id": int(booking.booking_id),
        })
    return {"payment": payment, "booking_status": booking.booking_status, "replayed": replayed}


@router.get("/", response_model=List[PaymentOut])
def get_payments(
    db: Session = Depends(get_db),
    skip: int = 0,
    limit: int = 10,
    booking_id: Optional[int] = Query(None),
):
    return payment_crud.get_all(db, skip=skip, limit=limit, filters={"booking_id": booking_id})


@router.get("/{payment_id}", response_model=PaymentOut)
def get_payment(payment_id: int, db: Session = Depends(get_db)):
    return payment_crud.get(db, payment_id)
