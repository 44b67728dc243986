from collections import Counter
from datetime import datetime
from fastapi import APIRouter, BackgroundTasks, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from crud.booking_crud import BookingAllocator, get_booking_allocator
from crud.show_crud import show_crud
from schemas import SeatStatus, ShowStatus
from schemas.theatre_schema import SeatMapOut, ShowCancelOut, ShowCreate, ShowOut
from utils.ws_manager import ws_manager

router = APIRouter(prefix="/shows", tags=["Shows"])


@router.post("/", response_model=ShowOut, status_code=status.HTTP_201_CREATED)
def create_show(show_in: ShowCreate, db: Session = Depends(get_db)):
    return show_crud.create_with_layout(db, show_in)

# -----------------------------
# GET ALL SHOWS (with filters)
# -----------------------------
@router.get("/", response_model=List[ShowOut])
def get_all_shows(
    db: Session = Depends(get_db),
    skip: int = 0,
    limit: int = 10,
    movie_id: Optional[int] = None,
    screen_id: Optional[int] = None,
    status: Optional[ShowStatus] = None,
    starts_after: Optional[datetime] = Query(None, description="Only shows starting at or after this time"),
):
    filters = {
        "movie_id": movie_id,
        "screen_id": screen_id,
        "status": status,
        "starts_after": starts_after,
    }
    return show_crud.get_all(db=db, skip=skip, limit=limit, filters=filters)

# -----------------------------
# GET SHOW BY ID
# -----------------------------
@router.get("/{show_id}", response_model=ShowOut)
def get_show(show_id: int, db: Session = Depends(get_db)):
    return show_crud.get(db=db, id=show_id)

# -----------------------------
# SEAT MAP
# -----------------------------
@router.get("/{show_id}/seats", response_model=SeatMapOut)
def get_seat_map(
    show_id: int,
    db: Session = Depends(get_db),
    allocator: BookingAllocator = Depends(get_booking_allocator),
):
    seats = allocator.seat_map(db, show_id)
    show = show_crud.get(db=db, id=show_id)
    counts = Counter(seat.status.value for seat in seats)
    return {
        "show_id": show_id,
        "status": show.status,
        "seats": seats,
        "counts": {s.value: counts.get(s.value, 0) for s in SeatStatus},
    }

# -----------------------------
# CANCEL A SHOW: RELEASE HOLDS, REFUND PAID BOOKINGS
# -----------------------------
@router.put("/{show_id}/cancel", response_model=ShowCancelOut)
def cancel_show(
    show_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    allocator: BookingAllocator = Depends(get_booking_allocator),
):
    show, released, refunded = allocator.cancel_show(db, show_id)
    background_tasks.add_task(ws_manager.broadcast_to_show, str(show_id), {
        "type": "show_cancelled",
        "show_id": show_id,
    })
    return {"show": show, "released_booking_ids": released, "refunded_booking_ids": refunded}
