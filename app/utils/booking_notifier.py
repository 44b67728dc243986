import logging

from schemas.notification_schemas import NotificationType
from utils.redis_client import push_notification_event_sync

logger = logging.getLogger(__name__)


class BookingNotifier:
    """
    Tells the notification pipeline about paid and cancelled bookings.

    Events are appended to the Redis notification stream; the consumer in
    utils.notification_consumer stores them in Mongo, pushes them over
    websockets and sends the email. Delivery is best effort: the allocator
    has already committed by the time it calls us.
    """

    def booking_paid(self, booking) -> None:
        self.publish({
            "user_id": booking.user_id,
            "booking_id": booking.booking_id,
            "email": booking.contact_email,
            "notification_type": NotificationType.BOOKING_CONFIRMED.value,
            "message": f"Your booking {booking.booking_reference} is confirmed.",
            "seat_numbers": ",".join(booking.seat_numbers),
            "amount": booking.amount,
        })

    def booking_cancelled(self, booking, reason: str | None = None) -> None:
        self.publish({
            "user_id": booking.user_id,
            "booking_id": booking.booking_id,
            "email": booking.contact_email,
            "notification_type": NotificationType.BOOKING_CANCELLED.value,
            "message": f"Your booking {booking.booking_reference} has been cancelled.",
            "reason": reason,
        })

    def payment_refunded(self, booking, reason: str | None = None) -> None:
        self.publish({
            "user_id": booking.user_id,
            "booking_id": booking.booking_id,
            "email": booking.contact_email,
            "notification_type": NotificationType.PAYMENT_REFUNDED.value,
            "message": f"The payment for booking {booking.booking_reference} has been refunded.",
            "amount": booking.amount,
            "reason": reason,
        })

    def publish(self, event: dict) -> None:
        push_notification_event_sync(event)
        logger.debug("Queued %s for booking %s", event["notification_type"], event["booking_id"])
