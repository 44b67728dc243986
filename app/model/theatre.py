from __future__ import annotations

from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from database import Base
from utils.helper import utcnow

#enum for show status
class ShowStatusEnum(str, Enum):
    UPCOMING = "UPCOMING"
    CANCELLED = "CANCELLED"


class SeatStatusEnum(str, Enum):
    AVAILABLE = "AVAILABLE"
    HELD = "HELD"
    BOOKED = "BOOKED"

#screen
class Screen(Base):
    __tablename__="screens"
    screen_id=Column(Integer, primary_key=True, index=True)
    cinema_name=Column(String(100), nullable=False)
    screen_name=Column(String(100), nullable=False)
    screen_type=Column(String(50), nullable=False, default="STANDARD")
    rows=Column(Integer, nullable=False)
    cols=Column(Integer, nullable=False)
    is_available=Column(Boolean, default=True)

    shows = relationship("Show", back_populates="screen", cascade="all,delete-orphan")

    __table_args__ = (
        CheckConstraint("rows > 0 AND cols > 0", name="ck_screen_grid_positive"),
    )


#show
class Show(Base):
    __tablename__ = "shows"

    show_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    movie_id = Column(Integer, ForeignKey("movies.movie_id", ondelete="CASCADE"), nullable=False)
    screen_id = Column(Integer, ForeignKey("screens.screen_id", ondelete="CASCADE"), nullable=False)
    start_time = Column(DateTime, nullable=False)  # naive UTC
    end_time = Column(DateTime, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    status = Column(SAEnum(ShowStatusEnum, name="show_status_enum"), nullable=False, default=ShowStatusEnum.UPCOMING)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relations
    movie = relationship("Movie", back_populates="shows")
    screen = relationship("Screen", back_populates="shows")
    seats = relationship(
        "ShowSeat",
        back_populates="show",
        cascade="all,delete-orphan",
        order_by="ShowSeat.position",
    )

    __table_args__ = (
        Index("ix_shows_movie_id", "movie_id"),
        Index("ix_shows_screen_id", "screen_id"),
        Index("ix_shows_start_time", "start_time"),
    )


# ---------------------------------------------------------------------------
# SHOW_SEAT
# One row per seat in a show's layout. status is only written by the booking
# allocator through conditional updates.
# ---------------------------------------------------------------------------

class ShowSeat(Base):
    __tablename__ = "show_seats"

    show_seat_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    show_id = Column(Integer, ForeignKey("shows.show_id", ondelete="CASCADE"), nullable=False)
    seat_number = Column(String(10), nullable=False)
    position = Column(Integer, nullable=False)
    status = Column(SAEnum(SeatStatusEnum, name="seat_status_enum"), nullable=False, default=SeatStatusEnum.AVAILABLE)
    booking_id = Column(Integer, ForeignKey("bookings.booking_id", ondelete="SET NULL"), nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    show = relationship("Show", back_populates="seats")

    __table_args__ = (
        UniqueConstraint("show_id", "seat_number", name="uq_show_seat_number"),
        Index("ix_show_seats_show_status", "show_id", "status"),
        Index("ix_show_seats_booking_id", "booking_id"),
    )
