from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from . import ORMModel, BookingStatus, StatusChangedBy


# ---------------------------------------------------------------------------
# bookings
# ---------------------------------------------------------------------------

class BookingCreate(ORMModel):
    user_id: int
    show_id: int
    contact_email: Optional[EmailStr] = None
    seat_numbers: list[str] = Field(..., description="Requested seats in order, e.g. ['A1', 'A2']")

    @field_validator("seat_numbers")
    @classmethod
    def _normalise_seats(cls, v):
        # Uniqueness and layout membership are checked by the allocator
        return [str(s).strip().upper() for s in v]


class BookingOut(ORMModel):
    booking_id: int
    user_id: int
    contact_email: Optional[str] = None
    show_id: int
    booking_reference: str
    booking_status: BookingStatus
    seat_numbers: list[str]
    amount: float
    payment_id: Optional[int] = None
    created_at: datetime
    expires_at: datetime


class BookingRelease(ORMModel):
    reason: Optional[str] = Field(None, max_length=255)


class CleanupOut(ORMModel):
    released: int


# ---------------------------------------------------------------------------
# booking_status (history/log)
# ---------------------------------------------------------------------------

class BookingStatusLogOut(ORMModel):
    status_log_id: int
    booking_id: int
    from_status: Optional[BookingStatus] = None
    to_status: BookingStatus
    changed_at: datetime
    changed_by: Optional[StatusChangedBy] = None
    reason: Optional[str] = None
