import asyncio
import logging

from model.notification import Notification
from utils.email_servicer import EmailService
from utils.notification_sender import send_notification
from utils.redis_client import redis_client, STREAM_KEY

logger = logging.getLogger(__name__)

LAST_ID_KEY = "notification_last_id"


async def handle_event(fields: dict, email_service: EmailService) -> Notification:
    """Persist one stream event, push it to the user's sockets and send its email."""
    booking_id = fields.get("booking_id")
    notif = Notification(
        user_id=int(fields["user_id"]),
        booking_id=int(booking_id) if booking_id else None,
        notification_type=fields.get("notification_type") or "INFO",
        message=fields.get("message", ""),
    )
    await notif.insert()

    delivered = await send_notification(notif.user_id, notif.message)
    if delivered:
        await notif.set({Notification.delivered: True})

    await email_service.send_for_event(fields)
    return notif


async def consume_notifications():
    last_id = await redis_client.get(LAST_ID_KEY) or "0-0"
    email_service = EmailService()

    while True:
        try:
            messages = await redis_client.xread(
                streams={STREAM_KEY: last_id},
                count=10,
                block=5000
            )
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Redis read error")
            await asyncio.sleep(2)
            continue

        if not messages:
            continue

        _, entries = messages[0]

        for msg_id, fields in entries:
            try:
                await handle_event(fields, email_service)
            except Exception:
                # a bad event must not stall the stream
                logger.exception("Failed to handle notification event %s", msg_id)

            last_id = msg_id
            await redis_client.set(LAST_ID_KEY, last_id)
