from __future__ import annotations

from enum import Enum

from sqlalchemy import (
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
    Index,
    Text,
)
from sqlalchemy.orm import relationship
from database import Base
from utils.helper import utcnow


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class BookingStatusEnum(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class StatusChangedByEnum(str, Enum):
    USER = "USER"
    SYSTEM = "SYSTEM"
    ADMIN = "ADMIN"
    PAYMENT_SERVICE = "PAYMENT_SERVICE"


class Booking(Base):
    __tablename__ = "bookings"

    booking_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)   # users live in the auth service
    contact_email = Column(String(255), nullable=True)  # where confirmation emails go
    show_id = Column(Integer, ForeignKey("shows.show_id", ondelete="CASCADE"), nullable=False, index=True)
    booking_reference = Column(String(20), nullable=False, unique=True, index=True)
    booking_status = Column(SAEnum(BookingStatusEnum, name="booking_status_enum"), nullable=False, default=BookingStatusEnum.PENDING)
    seat_numbers = Column(JSON, nullable=False)  # ordered as requested, never rewritten
    amount = Column(Numeric(10, 2), nullable=False)
    payment_id = Column(Integer, nullable=True, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)  # end of the hold window
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relations
    status_logs = relationship(
        "BookingStatusLog",
        back_populates="booking",
        cascade="all,delete-orphan",
        order_by="BookingStatusLog.status_log_id",
    )

    __table_args__ = (
        Index("ix_bookings_status_expires", "booking_status", "expires_at"),
    )


# ---------------------------------------------------------------------------
# booking_status (history/log)
# ---------------------------------------------------------------------------

class BookingStatusLog(Base):
    __tablename__ = "booking_status"

    status_log_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.booking_id", ondelete="CASCADE"), nullable=False)
    from_status = Column(SAEnum(BookingStatusEnum, name="booking_status_enum"), nullable=True)
    to_status = Column(SAEnum(BookingStatusEnum, name="booking_status_enum"), nullable=False)
    changed_at = Column(DateTime, default=utcnow, nullable=False)
    changed_by = Column(SAEnum(StatusChangedByEnum, name="status_changed_by_enum"), nullable=True)
    reason = Column(Text, nullable=True)

    booking = relationship("Booking", back_populates="status_logs")

    __table_args__ = (
        Index("ix_booking_status_booking_id", "booking_id"),
        Index("ix_booking_status_changed_at", "changed_at"),
    )
