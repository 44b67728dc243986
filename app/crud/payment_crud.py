import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crud.base import CRUDBase
from crud.booking_crud import BookingAllocator
from model import Booking, Payment, PaymentMethodEnum, PaymentStatusEnum, StatusChangedByEnum
from schemas.payment_schema import CallbackStatus, PaymentCallback
from utils.exceptions import BookingAlreadyPaid, BookingExpired

logger = logging.getLogger(__name__)


class PaymentCRUD(CRUDBase[Payment, PaymentCallback, PaymentCallback]):
    def get_by_transaction(self, db: Session, transaction_code: str):
        return db.query(Payment).filter(Payment.transaction_code == transaction_code).first()

    def handle_callback(self, db: Session, allocator: BookingAllocator, cb: PaymentCallback) -> tuple[Payment, Booking, bool]:
        """
        Apply a gateway callback to its booking.

        Returns (payment, booking, replayed). A transaction_code seen before is
        answered from the stored payment without touching the allocator. A
        successful payment that arrives after the hold expired, or after another
        payment already confirmed the booking, is recorded as REFUNDED and
        BookingExpired or BookingAlreadyPaid is raised. Only the payment that
        confirmed the booking is linked to it.
        """
        existing = self.get_by_transaction(db, cb.transaction_code)
        if existing:
            return self._replay(db, allocator, existing, cb)

        booking = allocator.get_booking(db, cb.booking_id)
        rejected = None

        if cb.status == CallbackStatus.SUCCESS:
            try:
                booking = allocator.confirm_booking(
                    db, cb.booking_id, StatusChangedByEnum.PAYMENT_SERVICE, allow_already_paid=False,
                )
                payment_status = PaymentStatusEnum.COMPLETED
            except (BookingExpired, BookingAlreadyPaid) as exc:
                payment_status = PaymentStatusEnum.REFUNDED
                rejected = exc
        else:
            payment_status = PaymentStatusEnum.FAILED

        payment = Payment(
            booking_id=booking.booking_id,
            payment_status=payment_status,
            payment_method=PaymentMethodEnum(cb.payment_method.value),
            transaction_code=cb.transaction_code,
            amount=booking.amount,
        )
        db.add(payment)
        try:
            db.flush()
            if payment_status == PaymentStatusEnum.COMPLETED:
                booking.payment_id = payment.payment_id
            db.commit()
        except IntegrityError:
            # same transaction_code raced in from another worker
            db.rollback()
            existing = self.get_by_transaction(db, cb.transaction_code)
            if existing is None:
                raise
            return self._replay(db, allocator, existing, cb)
        db.refresh(payment)
        logger.info(
            "Recorded %s payment %s for booking %s",
            payment_status.value, payment.transaction_code, booking.booking_id,
        )

        if rejected is not None:
            raise rejected
        if cb.status == CallbackStatus.FAILED:
            booking = allocator.release_hold(
                db,
                booking.booking_id,
                StatusChangedByEnum.PAYMENT_SERVICE,
                reason=f"Payment failed: {cb.message}" if cb.message else "Payment failed",
            )
        db.refresh(booking)
        return payment, booking, False

    def _replay(self, db: Session, allocator: BookingAllocator, payment: Payment, cb: PaymentCallback):
        if payment.booking_id != cb.booking_id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"transaction_code {cb.transaction_code} belongs to another booking",
            )
        logger.info("Replayed payment callback %s", cb.transaction_code)
        return payment, allocator.get_booking(db, payment.booking_id), True


payment_crud = PaymentCRUD(Payment, id_field="payment_id")
