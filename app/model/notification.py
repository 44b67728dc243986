from beanie import Document
from pydantic import Field
from typing import Optional
from datetime import datetime

from utils.helper import utcnow

class Notification(Document):
    user_id: int
    booking_id: Optional[int] = None
    notification_type: str
    message: str
    is_read: bool = False
    delivered: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    read_at: Optional[datetime] = None

    class Settings:
        name = "notifications"
