from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from beanie import PydanticObjectId
from pydantic import Field

from . import ORMModel


class NotificationType(str, Enum):
    BOOKING_CONFIRMED = "BOOKING_CONFIRMED"
    BOOKING_CANCELLED = "BOOKING_CANCELLED"
    PAYMENT_REFUNDED = "PAYMENT_REFUNDED"


class NotificationOut(ORMModel):
    id: PydanticObjectId
    user_id: int
    booking_id: Optional[int] = Field(None, description="Related booking (if applicable)")
    notification_type: str
    message: str
    is_read: bool
    delivered: bool
    created_at: datetime
    read_at: Optional[datetime] = None
