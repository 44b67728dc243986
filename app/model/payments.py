from __future__ import annotations

from enum import Enum

from sqlalchemy import (
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Index,
)

from database import Base
from utils.helper import utcnow


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class PaymentStatusEnum(str, Enum):
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentMethodEnum(str, Enum):
    UPI = "UPI"
    CARD = "CARD"
    WALLET = "WALLET"


# ---------------------------------------------------------------------------
# PAYMENT
# One row per gateway callback; transaction_code makes callbacks idempotent.
# ---------------------------------------------------------------------------

class Payment(Base):
    __tablename__ = "payments"

    payment_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.booking_id", ondelete="CASCADE"), nullable=False)
    payment_status = Column(SAEnum(PaymentStatusEnum, name="payment_status_enum"), nullable=False)
    payment_method = Column(SAEnum(PaymentMethodEnum, name="payment_method_enum"), nullable=False)
    transaction_code = Column(String(50), nullable=False, unique=True, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_payments_booking_id", "booking_id"),
    )
