"""
Seat allocation for shows.

BookingAllocator is the only writer of ShowSeat.status. Every seat or booking
transition is a conditional UPDATE whose WHERE clause restates the expected
current state; the caller commits only if the affected row count matches.
On top of that each show has an in-process lock, so read-check-write for one
show is serialized inside a worker while other shows proceed in parallel.
"""
import logging
import threading
import uuid
from datetime import timedelta
from decimal import Decimal
from typing import Callable, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from model import (
    Booking,
    BookingStatusEnum,
    BookingStatusLog,
    Payment,
    PaymentStatusEnum,
    SeatStatusEnum,
    Show,
    ShowSeat,
    ShowStatusEnum,
    StatusChangedByEnum,
)
from utils.booking_notifier import BookingNotifier
from utils.config import settings
from utils.exceptions import (
    BookingAlreadyPaid,
    BookingExpired,
    BookingNotFound,
    InvalidSeatSelection,
    SeatUnavailable,
    ShowAlreadyStarted,
    ShowNotFound,
)
from utils.helper import utcnow

logger = logging.getLogger(__name__)


class ShowLockRegistry:
    """One lock per show id, created on first use."""

    def __init__(self):
        self._locks: dict[int, threading.Lock] = {}
        self._guard = threading.Lock()

    def for_show(self, show_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(int(show_id))
            if lock is None:
                lock = self._locks[int(show_id)] = threading.Lock()
            return lock


def _new_reference() -> str:
    return "BKNG-" + uuid.uuid4().hex[:8].upper()


def _log_booking_status(db: Session, booking_id: int, from_status, to_status, changed_by, reason: Optional[str] = None):
    # Added to the current transaction; caller commits
    db.add(BookingStatusLog(
        booking_id=booking_id,
        from_status=from_status,
        to_status=to_status,
        changed_by=changed_by,
        reason=reason,
    ))


class BookingAllocator:
    def __init__(
        self,
        notifier: Optional[BookingNotifier] = None,
        hold_window: Optional[timedelta] = None,
        clock: Callable = utcnow,
        locks: Optional[ShowLockRegistry] = None,
    ):
        self.notifier = notifier or BookingNotifier()
        self.hold_window = hold_window if hold_window is not None else timedelta(minutes=settings.HOLD_WINDOW_MINUTES)
        self.clock = clock
        self.locks = locks or ShowLockRegistry()

    # ------------------------------------------------------------------
    # catalog / reads
    # ------------------------------------------------------------------
    def get_show(self, db: Session, show_id: int) -> Show:
        show = db.query(Show).filter(Show.show_id == show_id).first()
        if show is None or show.status == ShowStatusEnum.CANCELLED:
            raise ShowNotFound(f"Show {show_id} not found")
        return show

    def get_booking(self, db: Session, booking_id: int) -> Booking:
        booking = db.query(Booking).filter(Booking.booking_id == booking_id).first()
        if booking is None:
            raise BookingNotFound(f"Booking {booking_id} not found")
        return booking

    def seat_map(self, db: Session, show_id: int) -> list[ShowSeat]:
        show = db.query(Show).filter(Show.show_id == show_id).first()
        if show is None:
            raise ShowNotFound(f"Show {show_id} not found")
        return (
            db.query(ShowSeat)
            .filter(ShowSeat.show_id == show_id)
            .order_by(ShowSeat.position)
            .all()
        )

    # ------------------------------------------------------------------
    # create
    # ------------------------------------------------------------------
    def create_booking(
        self,
        db: Session,
        show_id: int,
        user_id: int,
        seat_numbers: list[str],
        contact_email: Optional[str] = None,
    ) -> Booking:
        seats = list(seat_numbers)
        with self.locks.for_show(show_id):
            try:
                now = self.clock()
                show = self.get_show(db, show_id)
                if show.start_time <= now:
                    raise ShowAlreadyStarted(f"Show {show_id} started at {show.start_time.isoformat()}")
                self._check_selection(db, show_id, seats)

                booking = Booking(
                    user_id=user_id,
                    contact_email=contact_email,
                    show_id=show_id,
                    booking_reference=_new_reference(),
                    booking_status=BookingStatusEnum.PENDING,
                    seat_numbers=seats,
                    amount=Decimal(show.price) * len(seats),
                    created_at=now,
                    expires_at=now + self.hold_window,
                )
                db.add(booking)
                db.flush()

                held = db.execute(
                    update(ShowSeat)
                    .where(
                        ShowSeat.show_id == show_id,
                        ShowSeat.seat_number.in_(seats),
                        ShowSeat.status == SeatStatusEnum.AVAILABLE,
                    )
                    .values(status=SeatStatusEnum.HELD, booking_id=booking.booking_id, updated_at=now)
                    .execution_options(synchronize_session=False)
                )
                if held.rowcount != len(seats):
                    db.rollback()
                    taken = self._unavailable_seats(db, show_id, seats)
                    raise SeatUnavailable(
                        f"Seats no longer available: {', '.join(taken) or ', '.join(seats)}",
                        seat_numbers=taken,
                    )

                _log_booking_status(db, booking.booking_id, None, BookingStatusEnum.PENDING,
                                    StatusChangedByEnum.USER, f"Held {len(seats)} seat(s)")
                db.commit()
            except Exception:
                db.rollback()
                raise

        db.refresh(booking)
        logger.info(
            "Held seats %s on show %s for user %s as booking %s (expires %s)",
            seats, show_id, user_id, booking.booking_id, booking.expires_at.isoformat(),
        )
        return booking

    def _check_selection(self, db: Session, show_id: int, seats: list[str]) -> None:
        if not seats:
            raise InvalidSeatSelection("At least one seat must be requested")
        duplicates = sorted({s for s in seats if seats.count(s) > 1})
        if duplicates:
            raise InvalidSeatSelection(f"Duplicate seats requested: {', '.join(duplicates)}")
        layout = {
            row.seat_number
            for row in db.query(ShowSeat.seat_number)
            .filter(ShowSeat.show_id == show_id, ShowSeat.seat_number.in_(seats))
        }
        unknown = [s for s in seats if s not in layout]
        if unknown:
            raise InvalidSeatSelection(f"Seats not in layout of show {show_id}: {', '.join(unknown)}")

    def _unavailable_seats(self, db: Session, show_id: int, seats: list[str]) -> list[str]:
        rows = (
            db.query(ShowSeat.seat_number)
            .filter(
                ShowSeat.show_id == show_id,
                ShowSeat.seat_number.in_(seats),
                ShowSeat.status != SeatStatusEnum.AVAILABLE,
            )
            .all()
        )
        taken = {r.seat_number for r in rows}
        return [s for s in seats if s in taken]

    # ------------------------------------------------------------------
    # confirm
    # ------------------------------------------------------------------
    def confirm_booking(
        self,
        db: Session,
        booking_id: int,
        changed_by: StatusChangedByEnum = StatusChangedByEnum.PAYMENT_SERVICE,
        allow_already_paid: bool = True,
    ) -> Booking:
        """
        Move a pending booking to PAID and its seats to BOOKED.

        A booking that is already PAID comes back unchanged, unless
        allow_already_paid is False: then BookingAlreadyPaid tells a payment
        caller that some other payment won the confirmation.
        """
        booking = self.get_booking(db, booking_id)
        show_id = booking.show_id
        confirmed = expired = False
        with self.locks.for_show(show_id):
            try:
                now = self.clock()
                claimed = db.execute(
                    update(Booking)
                    .where(
                        Booking.booking_id == booking_id,
                        Booking.booking_status == BookingStatusEnum.PENDING,
                        Booking.expires_at > now,
                    )
                    .values(booking_status=BookingStatusEnum.PAID, updated_at=now)
                    .execution_options(synchronize_session=False)
                )
                if claimed.rowcount == 1:
                    booked = db.execute(
                        update(ShowSeat)
                        .where(
                            ShowSeat.show_id == show_id,
                            ShowSeat.booking_id == booking_id,
                            ShowSeat.status == SeatStatusEnum.HELD,
                        )
                        .values(status=SeatStatusEnum.BOOKED, updated_at=now)
                        .execution_options(synchronize_session=False)
                    )
                    if booked.rowcount != len(booking.seat_numbers):
                        logger.error(
                            "Booking %s holds %s of %s seats; refusing to confirm",
                            booking_id, booked.rowcount, len(booking.seat_numbers),
                        )
                        raise BookingExpired(f"Booking {booking_id} no longer holds its seats")
                    _log_booking_status(db, booking_id, BookingStatusEnum.PENDING, BookingStatusEnum.PAID,
                                        changed_by, "Payment confirmed")
                    db.commit()
                    confirmed = True
                else:
                    db.rollback()
                    db.refresh(booking)
                    if booking.booking_status == BookingStatusEnum.PENDING:
                        # hold window elapsed but the sweep has not run yet
                        expired = self._release(db, booking, now, StatusChangedByEnum.SYSTEM, "Hold window elapsed")
                        db.commit()
            except Exception:
                db.rollback()
                raise

        db.refresh(booking)
        if confirmed:
            logger.info("Confirmed booking %s, seats %s booked", booking_id, booking.seat_numbers)
            self._notify(self.notifier.booking_paid, booking)
            return booking
        if booking.booking_status == BookingStatusEnum.PAID:
            if not allow_already_paid:
                raise BookingAlreadyPaid(f"Booking {booking_id} is already paid")
            return booking
        if expired:
            logger.info("Booking %s expired before confirmation; seats released", booking_id)
            self._notify(self.notifier.booking_cancelled, booking, "Hold window elapsed")
        raise BookingExpired(f"Booking {booking_id} is {booking.booking_status.value.lower()} and cannot be confirmed")

    # ------------------------------------------------------------------
    # release
    # ------------------------------------------------------------------
    def release_hold(
        self,
        db: Session,
        booking_id: int,
        changed_by: StatusChangedByEnum = StatusChangedByEnum.USER,
        reason: Optional[str] = None,
    ) -> Booking:
        """Cancel a pending booking and free its seats. No-op for paid or cancelled bookings."""
        booking = self.get_booking(db, booking_id)
        with self.locks.for_show(booking.show_id):
            try:
                released = self._release(db, booking, self.clock(), changed_by, reason or "Hold released")
                db.commit()
            except Exception:
                db.rollback()
                raise

        db.refresh(booking)
        if released:
            logger.info("Released hold of booking %s (%s)", booking_id, reason or "Hold released")
            self._notify(self.notifier.booking_cancelled, booking, reason)
        else:
            logger.debug("Release of booking %s ignored, status %s", booking_id, booking.booking_status.value)
        return booking

    def release_expired_holds(self, db: Session) -> int:
        """Cancel every pending booking whose hold window has elapsed. Returns how many were released."""
        cutoff = self.clock()
        expired = (
            db.query(Booking.booking_id, Booking.show_id)
            .filter(
                Booking.booking_status == BookingStatusEnum.PENDING,
                Booking.expires_at <= cutoff,
            )
            .order_by(Booking.booking_id)
            .all()
        )
        db.rollback()

        released = 0
        for booking_id, show_id in expired:
            booking = db.query(Booking).filter(Booking.booking_id == booking_id).first()
            if booking is None:
                continue
            with self.locks.for_show(show_id):
                try:
                    done = self._release(db, booking, self.clock(), StatusChangedByEnum.SYSTEM, "Hold window elapsed")
                    db.commit()
                except Exception:
                    db.rollback()
                    raise
            if done:
                released += 1
                db.refresh(booking)
                self._notify(self.notifier.booking_cancelled, booking, "Hold window elapsed")

        if released:
            logger.info("Released %s expired hold(s)", released)
        return released

    def _release(self, db: Session, booking: Booking, now, changed_by, reason: str) -> bool:
        # Caller holds the show lock and commits
        claimed = db.execute(
            update(Booking)
            .where(
                Booking.booking_id == booking.booking_id,
                Booking.booking_status == BookingStatusEnum.PENDING,
            )
            .values(booking_status=BookingStatusEnum.CANCELLED, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            return False
        db.execute(
            update(ShowSeat)
            .where(
                ShowSeat.show_id == booking.show_id,
                ShowSeat.booking_id == booking.booking_id,
                ShowSeat.status == SeatStatusEnum.HELD,
            )
            .values(status=SeatStatusEnum.AVAILABLE, booking_id=None, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        _log_booking_status(db, booking.booking_id, BookingStatusEnum.PENDING, BookingStatusEnum.CANCELLED,
                            changed_by, reason)
        return True

    # ------------------------------------------------------------------
    # show cancellation
    # ------------------------------------------------------------------
    def cancel_show(self, db: Session, show_id: int) -> tuple[Show, list[int], list[int]]:
        """
        Mark a show CANCELLED.

        Pending holds are released the same way release_hold does it. Paid
        bookings keep their status and seats; only their COMPLETED payments
        become REFUNDED. Returns the show, the released booking ids and the
        refunded booking ids. Calling it again is a no-op.
        """
        show = db.query(Show).filter(Show.show_id == show_id).first()
        if show is None:
            raise ShowNotFound(f"Show {show_id} not found")

        released, refunded = [], []
        with self.locks.for_show(show_id):
            try:
                now = self.clock()
                show.status = ShowStatusEnum.CANCELLED
                pending = (
                    db.query(Booking)
                    .filter(Booking.show_id == show_id, Booking.booking_status == BookingStatusEnum.PENDING)
                    .order_by(Booking.booking_id)
                    .all()
                )
                for booking in pending:
                    if self._release(db, booking, now, StatusChangedByEnum.ADMIN, "Show cancelled"):
                        released.append(booking.booking_id)

                paid_ids = [
                    row.booking_id
                    for row in db.query(Booking.booking_id)
                    .filter(Booking.show_id == show_id, Booking.booking_status == BookingStatusEnum.PAID)
                    .order_by(Booking.booking_id)
                ]
                for booking_id in paid_ids:
                    result = db.execute(
                        update(Payment)
                        .where(
                            Payment.booking_id == booking_id,
                            Payment.payment_status == PaymentStatusEnum.COMPLETED,
                        )
                        .values(payment_status=PaymentStatusEnum.REFUNDED)
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount:
                        refunded.append(booking_id)
                db.commit()
            except Exception:
                db.rollback()
                raise

        db.refresh(show)
        for booking_id in released:
            self._notify(self.notifier.booking_cancelled, self.get_booking(db, booking_id), "Show cancelled")
        for booking_id in refunded:
            self._notify(self.notifier.payment_refunded, self.get_booking(db, booking_id), "Show cancelled")
        logger.info(
            "Cancelled show %s: released %s hold(s), refunded %s booking(s)",
            show_id, len(released), len(refunded),
        )
        return show, released, refunded

    def _notify(self, send, booking: Booking, *args) -> None:
        # Notifications are fire-and-forget; the transition is already committed
        try:
            send(booking, *args)
        except Exception:
            logger.exception("Notification for booking %s failed", booking.booking_id)


booking_allocator = BookingAllocator()


def get_booking_allocator() -> BookingAllocator:
    return booking_allocator
