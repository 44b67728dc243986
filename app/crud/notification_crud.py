from typing import List

from beanie import PydanticObjectId
from fastapi import HTTPException, status

from model.notification import Notification
from utils.helper import utcnow


class NotificationCRUD:
    """Read side of the notification store; the stream consumer does the inserts."""

    async def get(self, id: str) -> Notification:
        notif = None
        if PydanticObjectId.is_valid(id):
            notif = await Notification.get(PydanticObjectId(id))
        if notif is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Notification {id} not found",
            )
        return notif

    async def list_for_user(
        self,
        user_id: int | None = None,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 10,
    ) -> List[Notification]:
        filters = {}
        if user_id is not None:
            filters["user_id"] = user_id
        if unread_only:
            filters["is_read"] = False
        return await Notification.find(filters).sort("-created_at").skip(skip).limit(limit).to_list()

    async def mark_read(self, id: str) -> Notification:
        notif = await self.get(id)
        if not notif.is_read:
            await notif.set({Notification.is_read: True, Notification.read_at: utcnow()})
        return notif

    async def mark_all_read(self, user_id: int) -> None:
        await Notification.find({"user_id": user_id, "is_read": False}).update(
            {"$set": {"is_read": True, "read_at": utcnow()}}
        )


notification_crud = NotificationCRUD()
