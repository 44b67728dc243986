from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import START
from crud.booking_crud import BookingAllocator
from model import (
    Booking,
    BookingStatusEnum,
    BookingStatusLog,
    Payment,
    PaymentMethodEnum,
    PaymentStatusEnum,
    SeatStatusEnum,
    StatusChangedByEnum,
)
from utils.exceptions import (
    BookingAlreadyPaid,
    BookingExpired,
    BookingNotFound,
    InvalidSeatSelection,
    SeatUnavailable,
    ShowAlreadyStarted,
    ShowNotFound,
)

AVAILABLE, HELD, BOOKED = SeatStatusEnum.AVAILABLE, SeatStatusEnum.HELD, SeatStatusEnum.BOOKED


def test_hold_confirm_and_rebook_scenario(db, allocator, make_show, seat_statuses):
    show_id = make_show()

    b1 = allocator.create_booking(db, show_id, user_id=1, seat_numbers=["A1", "A2"])
    assert b1.booking_status == BookingStatusEnum.PENDING
    assert b1.seat_numbers == ["A1", "A2"]
    assert seat_statuses(show_id) == {"A1": HELD, "A2": HELD, "A3": AVAILABLE}

    with pytest.raises(SeatUnavailable) as exc:
        allocator.create_booking(db, show_id, user_id=2, seat_numbers=["A2", "A3"])
    assert exc.value.seat_numbers == ["A2"]
    # the losing request must not leave A3 held
    assert seat_statuses(show_id)["A3"] == AVAILABLE

    paid = allocator.confirm_booking(db, b1.booking_id)
    assert paid.booking_status == BookingStatusEnum.PAID
    assert seat_statuses(show_id) == {"A1": BOOKED, "A2": BOOKED, "A3": AVAILABLE}

    with pytest.raises(SeatUnavailable):
        allocator.create_booking(db, show_id, user_id=2, seat_numbers=["A2"])

    b3 = allocator.create_booking(db, show_id, user_id=2, seat_numbers=["A3"])
    assert b3.booking_status == BookingStatusEnum.PENDING
    assert seat_statuses(show_id)["A3"] == HELD


def test_create_booking_sets_amount_reference_and_expiry(db, allocator, make_show, clock):
    show_id = make_show(price=180)

    booking = allocator.create_booking(db, show_id, user_id=7, seat_numbers=["A3", "A1"], contact_email="u7@example.com")

    assert booking.amount == Decimal("360.00")
    assert booking.booking_reference.startswith("BKNG-")
    assert len(booking.booking_reference) == 13
    assert booking.created_at == clock.now
    assert booking.expires_at == clock.now + timedelta(minutes=10)
    assert booking.seat_numbers == ["A3", "A1"]
    assert booking.contact_email == "u7@example.com"


def test_failed_request_creates_no_booking(db, allocator, make_show):
    show_id = make_show()
    allocator.create_booking(db, show_id, user_id=1, seat_numbers=["A1"])

    with pytest.raises(SeatUnavailable):
        allocator.create_booking(db, show_id, user_id=2, seat_numbers=["A1", "A2"])

    assert db.query(Booking).count() == 1


@pytest.mark.parametrize(
    "seats",
    [
        [],
        ["A1", "A1"],
        ["Z9"],
        ["A1", "B7"],
    ],
)
def test_invalid_seat_selection(db, allocator, make_show, seat_statuses, seats):
    show_id = make_show()

    with pytest.raises(InvalidSeatSelection):
        allocator.create_booking(db, show_id, user_id=1, seat_numbers=seats)

    assert set(seat_statuses(show_id).values()) == {AVAILABLE}


def test_unknown_show(db, allocator):
    with pytest.raises(ShowNotFound):
        allocator.create_booking(db, 999, user_id=1, seat_numbers=["A1"])


def test_show_already_started(db, allocator, make_show, clock):
    show_id = make_show(start=START + timedelta(minutes=30))
    clock.advance(minutes=30)

    with pytest.raises(ShowAlreadyStarted):
        allocator.create_booking(db, show_id, user_id=1, seat_numbers=["A1"])


def test_unknown_booking(db, allocator):
    with pytest.raises(BookingNotFound):
        allocator.confirm_booking(db, 12345)
    with pytest.raises(BookingNotFound):
        allocator.release_hold(db, 12345)


def test_release_hold_is_idempotent(db, allocator, make_show, seat_statuses, notifier):
    show_id = make_show()
    booking = allocator.create_booking(db, show_id, user_id=1, seat_numbers=["A1", "A2"])

    first = allocator.release_hold(db, booking.booking_id, reason="changed my mind")
    second = allocator.release_hold(db, booking.booking_id)

    assert first.booking_status == BookingStatusEnum.CANCELLED
    assert second.booking_status == BookingStatusEnum.CANCELLED
    assert set(seat_statuses(show_id).values()) == {AVAILABLE}
    assert notifier.types() == ["BOOKING_CANCELLED"]
    assert notifier.events[0]["reason"] == "changed my mind"


def test_release_hold_never_touches_paid_booking(db, allocator, make_show, seat_statuses):
    show_id = make_show()
    booking = allocator.create_booking(db, show_id, user_id=1, seat_numbers=["A1"])
    allocator.confirm_booking(db, booking.booking_id)

    result = allocator.release_hold(db, booking.booking_id)

    assert result.booking_status == BookingStatusEnum.PAID
    assert seat_statuses(show_id)["A1"] == BOOKED


def test_confirm_paid_booking_returns_it_unchanged(db, allocator, make_show, notifier):
    show_id = make_show()
    booking = allocator.create_booking(db, show_id, user_id=1, seat_numbers=["A1"])
    allocator.confirm_booking(db, booking.booking_id)

    again = allocator.confirm_booking(db, booking.booking_id)

    assert again.booking_status == BookingStatusEnum.PAID
    assert notifier.types() == ["BOOKING_CONFIRMED"]

    with pytest.raises(BookingAlreadyPaid):
        allocator.confirm_booking(db, booking.booking_id, allow_already_paid=False)
    assert notifier.types() == ["BOOKING_CONFIRMED"]


def test_confirm_cancelled_booking_raises(db, allocator, make_show):
    show_id = make_show()
    booking = allocator.create_booking(db, show_id, user_id=1, seat_numbers=["A1"])
    allocator.release_hold(db, booking.booking_id)

    with pytest.raises(BookingExpired):
        allocator.confirm_booking(db, booking.booking_id)


def test_confirm_after_hold_window_releases_seats(db, allocator, make_show, clock, seat_statuses, notifier):
    show_id = make_show()
    booking = allocator.create_booking(db, show_id, user_id=1, seat_numbers=["A1", "A2"])
    clock.advance(minutes=10)

    with pytest.raises(BookingExpired):
        allocator.confirm_booking(db, booking.booking_id)

    db.refresh(booking)
    assert booking.booking_status == BookingStatusEnum.CANCELLED
    assert set(seat_statuses(show_id).values()) == {AVAILABLE}
    assert notifier.types() == ["BOOKING_CANCELLED"]


def test_release_expired_holds(db, allocator, make_show, clock, seat_statuses):
    show_id = make_show()
    old = allocator.create_booking(db, show_id, user_id=1, seat_numbers=["A1"])
    clock.advance(minutes=6)
    fresh = allocator.create_booking(db, show_id, user_id=2, seat_numbers=["A2"])
    clock.advance(minutes=5)

    assert allocator.release_expired_holds(db) == 1
    assert allocator.release_expired_holds(db) == 0

    assert allocator.get_booking(db, old.booking_id).booking_status == BookingStatusEnum.CANCELLED
    assert allocator.get_booking(db, fresh.booking_id).booking_status == BookingStatusEnum.PENDING
    assert seat_statuses(show_id) == {"A1": AVAILABLE, "A2": HELD, "A3": AVAILABLE}

    # the released seat can be held again
    again = allocator.create_booking(db, show_id, user_id=3, seat_numbers=["A1"])
    assert again.booking_status == BookingStatusEnum.PENDING


def test_status_log_records_every_transition(db, allocator, make_show):
    show_id = make_show()
    booking = allocator.create_booking(db, show_id, user_id=1, seat_numbers=["A1"])
    allocator.confirm_booking(db, booking.booking_id)

    logs = (
        db.query(BookingStatusLog)
        .filter(BookingStatusLog.booking_id == booking.booking_id)
        .order_by(BookingStatusLog.status_log_id)
        .all()
    )
    assert [(l.from_status, l.to_status) for l in logs] == [
        (None, BookingStatusEnum.PENDING),
        (BookingStatusEnum.PENDING, BookingStatusEnum.PAID),
    ]
    assert logs[0].changed_by == StatusChangedByEnum.USER
    assert logs[1].changed_by == StatusChangedByEnum.PAYMENT_SERVICE


def test_cancel_show_releases_holds_and_keeps_paid_bookings(db, allocator, make_show, seat_statuses, notifier):
    show_id = make_show()
    held = allocator.create_booking(db, show_id, user_id=1, seat_numbers=["A1"])
    paid = allocator.create_booking(db, show_id, user_id=2, seat_numbers=["A2"])
    allocator.confirm_booking(db, paid.booking_id)
    db.add(Payment(
        booking_id=paid.booking_id,
        payment_status=PaymentStatusEnum.COMPLETED,
        payment_method=PaymentMethodEnum.CARD,
        transaction_code="TXN-SHOW-CANCEL",
        amount=paid.amount,
    ))
    db.commit()

    show, released, refunded = allocator.cancel_show(db, show_id)

    assert show.status.value == "CANCELLED"
    assert released == [held.booking_id]
    assert refunded == [paid.booking_id]
    assert allocator.get_booking(db, held.booking_id).booking_status == BookingStatusEnum.CANCELLED
    assert allocator.get_booking(db, paid.booking_id).booking_status == BookingStatusEnum.PAID
    assert seat_statuses(show_id) == {"A1": AVAILABLE, "A2": BOOKED, "A3": AVAILABLE}
    payment = db.query(Payment).filter(Payment.booking_id == paid.booking_id).one()
    assert payment.payment_status == PaymentStatusEnum.REFUNDED
    assert notifier.types() == ["BOOKING_CONFIRMED", "BOOKING_CANCELLED", "PAYMENT_REFUNDED"]

    paid_logs = (
        db.query(BookingStatusLog)
        .filter(BookingStatusLog.booking_id == paid.booking_id)
        .order_by(BookingStatusLog.status_log_id)
        .all()
    )
    assert [l.to_status for l in paid_logs] == [BookingStatusEnum.PENDING, BookingStatusEnum.PAID]

    with pytest.raises(ShowNotFound):
        allocator.create_booking(db, show_id, user_id=3, seat_numbers=["A3"])

    assert allocator.cancel_show(db, show_id)[1:] == ([], [])


def test_conditional_update_guards_without_shared_lock(db, notifier, clock, make_show, seat_statuses):
    # two allocators with their own lock registries behave like two worker processes
    show_id = make_show()
    first = BookingAllocator(notifier=notifier, hold_window=timedelta(minutes=10), clock=clock)
    second = BookingAllocator(notifier=notifier, hold_window=timedelta(minutes=10), clock=clock)

    first.create_booking(db, show_id, user_id=1, seat_numbers=["A1", "A2"])
    with pytest.raises(SeatUnavailable):
        second.create_booking(db, show_id, user_id=2, seat_numbers=["A3", "A2"])

    assert seat_statuses(show_id) == {"A1": HELD, "A2": HELD, "A3": AVAILABLE}


def test_notifier_failure_does_not_undo_confirmation(db, allocator, make_show, notifier, monkeypatch):
    show_id = make_show()
    booking = allocator.create_booking(db, show_id, user_id=1, seat_numbers=["A1"])

    def boom(event):
        raise ConnectionError("redis down")

    monkeypatch.setattr(notifier, "publish", boom)

    paid = allocator.confirm_booking(db, booking.booking_id)
    assert paid.booking_status == BookingStatusEnum.PAID
