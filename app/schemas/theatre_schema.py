from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from . import ORMModel, ScreenType, SeatStatus, ShowStatus


# SCREEN
class ScreenBase(ORMModel):
    cinema_name: str = Field(..., max_length=100)
    screen_name: str = Field(..., max_length=100)
    screen_type: ScreenType = ScreenType.STANDARD
    rows: int = Field(..., ge=1, le=52)
    cols: int = Field(..., ge=1, le=60)
    is_available: bool = True


class ScreenCreate(ScreenBase):
    pass


class ScreenUpdate(ORMModel):
    cinema_name: Optional[str] = Field(None, max_length=100)
    screen_name: Optional[str] = Field(None, max_length=100)
    screen_type: Optional[ScreenType] = None
    is_available: Optional[bool] = None


class ScreenOut(ScreenBase):
    screen_id: int


# SHOW
class ShowBase(ORMModel):
    movie_id: int
    screen_id: int
    start_time: datetime
    price: float = Field(..., ge=0, le=99999.99)


class ShowCreate(ShowBase):
    seat_numbers: Optional[list[str]] = Field(
        None,
        description="Explicit seat layout in display order; defaults to the screen grid",
    )

    @field_validator("seat_numbers")
    @classmethod
    def _strip_seats(cls, v):
        if v is None:
            return v
        cleaned = [s.strip().upper() for s in v]
        if not cleaned or any(not s or len(s) > 10 for s in cleaned):
            raise ValueError("seat_numbers must be non-empty labels of at most 10 characters")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError("seat_numbers contains duplicates")
        return cleaned


class ShowOut(ShowBase):
    show_id: int
    end_time: datetime
    status: ShowStatus
    created_at: datetime


# SHOW_SEAT
class ShowSeatOut(ORMModel):
    seat_number: str
    position: int
    status: SeatStatus
    booking_id: Optional[int] = None


class SeatMapOut(ORMModel):
    show_id: int
    status: ShowStatus
    seats: list[ShowSeatOut]
    counts: dict[str, int]


class ShowCancelOut(ORMModel):
    show: ShowOut
    released_booking_ids: list[int]
    refunded_booking_ids: list[int]
