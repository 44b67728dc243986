from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from . import ORMModel, PaymentMethod, PaymentStatus, BookingStatus


class CallbackStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class PaymentCallback(ORMModel):
    booking_id: int
    transaction_code: str = Field(..., min_length=1, max_length=50)
    payment_method: PaymentMethod = PaymentMethod.CARD
    status: CallbackStatus
    message: Optional[str] = Field(None, max_length=255)


class PaymentOut(ORMModel):
    payment_id: int
    booking_id: int
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    transaction_code: str
    amount: float
    created_at: datetime


class PaymentCallbackOut(ORMModel):
    payment: PaymentOut
    booking_status: BookingStatus
    replayed: bool = False
