from fastapi import APIRouter, BackgroundTasks, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from crud.booking_crud import BookingAllocator, get_booking_allocator
from model import Booking, BookingStatusLog, StatusChangedByEnum
from schemas import BookingStatus
from schemas.booking_schema import (
    BookingCreate,
    BookingOut,
    BookingRelease,
    BookingStatusLogOut,
    CleanupOut,
)
from utils.ws_manager import ws_manager

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def _seat_event(event_type: str, booking: Booking) -> dict:
    return {
        "type": event_type,
        "show_id": int(booking.show_id),
        "seat_numbers": list(booking.seat_numbers),
        "booking_id": int(booking.booking_id),
    }


@router.post("/", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
def create_booking(
    obj: BookingCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    allocator: BookingAllocator = Depends(get_booking_allocator),
):
    booking = allocator.create_booking(
        db,
        show_id=obj.show_id,
        user_id=obj.user_id,
        seat_numbers=obj.seat_numbers,
        contact_email=obj.contact_email,
    )
    background_tasks.add_task(ws_manager.broadcast_to_show, str(booking.show_id), _seat_event("seat_held", booking))
    return booking


@router.get("/", response_model=List[BookingOut])
def get_bookings(
    db: Session = Depends(get_db),
    skip: int = 0,
    limit: int = 10,
    user_id: Optional[int] = Query(None),
    show_id: Optional[int] = Query(None),
    booking_status: Optional[BookingStatus] = Query(None),
):
    query = db.query(Booking)
    if user_id is not None:
        query = query.filter(Booking.user_id == user_id)
    if show_id is not None:
        query = query.filter(Booking.show_id == show_id)
    if booking_status is not None:
        query = query.filter(Booking.booking_status == booking_status.value)
    return query.order_by(Booking.booking_id).offset(skip).limit(limit).all()


# declared ahead of the /{booking_id} routes
@router.post("/cleanup", response_model=CleanupOut)
def cleanup_expired_holds(
    db: Session = Depends(get_db),
    allocator: BookingAllocator = Depends(get_booking_allocator),
):
    return {"released": allocator.release_expired_holds(db)}


@router.get("/{booking_id}", response_model=BookingOut)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    allocator: BookingAllocator = Depends(get_booking_allocator),
):
    return allocator.get_booking(db, booking_id)


@router.get("/{booking_id}/logs", response_model=List[BookingStatusLogOut])
def get_booking_logs(
    booking_id: int,
    db: Session = Depends(get_db),
    allocator: BookingAllocator = Depends(get_booking_allocator),
):
    allocator.get_booking(db, booking_id)
    return (
        db.query(BookingStatusLog)
        .filter(BookingStatusLog.booking_id == booking_id)
        .order_by(BookingStatusLog.status_log_id.asc())
        .all()
    )


@router.put("/{booking_id}/release", response_model=BookingOut)
def release_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    body: Optional[BookingRelease] = None,
    db: Session = Depends(get_db),
    allocator: BookingAllocator = Depends(get_booking_allocator),
):
    reason = body.reason if body and body.reason else "User-initiated cancellation"
    booking = allocator.release_hold(db, booking_id, StatusChangedByEnum.USER, reason)
    background_tasks.add_task(ws_manager.broadcast_to_show, str(booking.show_id), _seat_event("seat_released", booking))
    return booking
