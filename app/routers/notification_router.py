from fastapi import APIRouter, Query
from typing import List

from crud.notification_crud import notification_crud
from schemas.notification_schemas import NotificationOut

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/", response_model=List[NotificationOut])
async def get_notifications(
    skip: int = 0,
    limit: int = 10,
    user_id: int | None = Query(None),
    unread_only: bool = False,
):
    return await notification_crud.list_for_user(user_id=user_id, unread_only=unread_only, skip=skip, limit=limit)


@router.get("/{id}", response_model=NotificationOut)
async def get_notification(id: str):
    return await notification_crud.get(id)


@router.patch("/{id}/read", response_model=NotificationOut)
async def mark_read(id: str):
    return await notification_crud.mark_read(id)


@router.post("/mark-all-read/{user_id}")
async def mark_all_read(user_id: int):
    await notification_crud.mark_all_read(user_id)
    return {"detail": "All notifications marked read"}
