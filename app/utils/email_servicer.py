from __future__ import annotations

import asyncio
import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from jinja2 import Environment, FileSystemLoader, select_autoescape
from pathlib import Path
from typing import Any, Dict, Optional

from schemas.notification_schemas import NotificationType
from utils.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(self) -> None:
        # Uses utils/templates by default
        template_dir = Path(__file__).resolve().parent / "templates"
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            enable_async=False,
        )

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        tpl = self.jinja_env.get_template(template_name)
        return tpl.render(**context)

    async def send_email(self, to_email: str, subject: str, html_content: str) -> bool:
        if not settings.SMTP_HOST or not settings.SMTP_PORT:
            logger.warning("SMTP host/port not configured; skipping email to %s", to_email)
            return False
        return await asyncio.to_thread(self._send, to_email, subject, html_content)

    def _send(self, to_email: str, subject: str, html_content: str) -> bool:
        msg = MIMEMultipart("alternative")
        msg["From"] = settings.SMTP_FROM or settings.SMTP_USER or "no-reply@localhost"
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.attach(MIMEText(html_content, "html"))

        try:
            with smtplib.SMTP(settings.SMTP_HOST, int(settings.SMTP_PORT), timeout=10) as server:
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls()
                    server.ehlo()
                if settings.SMTP_USER and settings.SMTP_PASSWORD:
                    server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
                server.send_message(msg)
            return True
        except (smtplib.SMTPException, OSError):
            logger.exception("Email to %s failed", to_email)
            return False

    async def send_booking_confirmed_email(
        self,
        to_email: str,
        booking_id: str,
        seat_numbers: str,
        total_amount: float,
        deeplink: Optional[str] = None,
    ) -> bool:
        html = self.render(
            "notification.html",
            dict(
                type="booking_confirmed",
                title="Booking Confirmed",
                message=f"Your booking {booking_id} has been confirmed",
                metadata={
                    "bookingId": booking_id,
                    "seats": seat_numbers,
                    "totalAmount": f"{total_amount:.2f}",
                },
                frontend_url=settings.FRONTEND_URL,
                deeplink=deeplink,
            ),
        )
        return await self.send_email(to_email, f"Booking Confirmed - {booking_id}", html)

    async def send_booking_cancelled_email(
        self,
        to_email: str,
        booking_id: str,
        cancellation_reason: str,
        deeplink: Optional[str] = None,
    ) -> bool:
        html = self.render(
            "notification.html",
            dict(
                type="booking_cancelled",
                title="Booking Cancelled",
                message=f"Booking {booking_id} has been cancelled",
                metadata={
                    "bookingId": booking_id,
                    "reason": cancellation_reason,
                },
                frontend_url=settings.FRONTEND_URL,
                deeplink=deeplink,
            ),
        )
        return await self.send_email(to_email, f"Booking Cancelled - {booking_id}", html)

    async def send_payment_refunded_email(
        self,
        to_email: str,
        booking_id: str,
        amount: float,
        reason: str,
        deeplink: Optional[str] = None,
    ) -> bool:
        html = self.render(
            "notification.html",
            dict(
                type="payment_refunded",
                title="Payment Refunded",
                message=f"The payment for booking {booking_id} has been refunded",
                metadata={
                    "bookingId": booking_id,
                    "refundAmount": f"{amount:.2f}",
                    "reason": reason,
                },
                frontend_url=settings.FRONTEND_URL,
                deeplink=deeplink,
            ),
        )
        return await self.send_email(to_email, f"Payment Refunded - {booking_id}", html)

    async def send_for_event(self, event: dict) -> bool:
        """Send the email matching a notification stream event, if it names a recipient."""
        to_email = event.get("email")
        if not to_email:
            return False
        booking_id = str(event.get("booking_id", ""))
        deeplink = f"{settings.FRONTEND_URL}/bookings/{booking_id}" if booking_id else None
        notif_type = event.get("notification_type")
        if notif_type == NotificationType.BOOKING_CONFIRMED:
            return await self.send_booking_confirmed_email(
                to_email=to_email,
                booking_id=booking_id,
                seat_numbers=event.get("seat_numbers", ""),
                total_amount=float(event.get("amount") or 0),
                deeplink=deeplink,
            )
        if notif_type == NotificationType.BOOKING_CANCELLED:
            return await self.send_booking_cancelled_email(
                to_email=to_email,
                booking_id=booking_id,
                cancellation_reason=event.get("reason") or "cancelled",
                deeplink=deeplink,
            )
        if notif_type == NotificationType.PAYMENT_REFUNDED:
            return await self.send_payment_refunded_email(
                to_email=to_email,
                booking_id=booking_id,
                amount=float(event.get("amount") or 0),
                reason=event.get("reason") or "refunded",
                deeplink=deeplink,
            )
        logger.debug("No email template for notification type %s", notif_type)
        return False
