import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

from crud.booking_crud import BookingAllocator, ShowLockRegistry
from model import Booking, BookingStatusEnum, SeatStatusEnum, ShowSeat
from utils.exceptions import SeatUnavailable

SEATS = [f"A{i}" for i in range(1, 9)]


def _run_concurrently(session_factory, allocator, requests):
    # a list of allocators is used round robin, one per request
    allocators = allocator if isinstance(allocator, list) else [allocator]
    barrier = threading.Barrier(len(requests))

    def attempt(args):
        user_id, show_id, seats = args
        allocator = allocators[user_id % len(allocators)]
        session = session_factory()
        try:
            barrier.wait()
            booking = allocator.create_booking(session, show_id, user_id=user_id, seat_numbers=seats)
            return booking.booking_id
        except SeatUnavailable:
            return None
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=len(requests)) as pool:
        return list(pool.map(attempt, requests))


def test_overlapping_requests_claim_each_seat_once(db, session_factory, allocator, make_show):
    show_id = make_show(seats=SEATS)
    # every neighbouring pair overlaps with the next one
    requests = [(user, show_id, [SEATS[i], SEATS[i + 1]]) for user, i in enumerate(range(len(SEATS) - 1))]

    results = _run_concurrently(session_factory, allocator, requests)
    winners = [r for r in results if r is not None]

    assert winners
    bookings = db.query(Booking).filter(Booking.booking_id.in_(winners)).all()
    claimed = Counter(seat for b in bookings for seat in b.seat_numbers)
    assert all(n == 1 for n in claimed.values())

    held = db.query(ShowSeat).filter(ShowSeat.show_id == show_id, ShowSeat.status == SeatStatusEnum.HELD).all()
    assert {s.seat_number for s in held} == set(claimed)
    for seat in held:
        owner = next(b for b in bookings if seat.seat_number in b.seat_numbers)
        assert seat.booking_id == owner.booking_id

    # losers left nothing behind
    assert db.query(Booking).count() == len(winners)


def test_allocators_without_shared_lock_claim_each_seat_once(db, session_factory, notifier, clock, make_show):
    # separate lock registries stand in for separate worker processes
    show_id = make_show(seats=SEATS)
    allocators = [
        BookingAllocator(notifier=notifier, hold_window=timedelta(minutes=10), clock=clock, locks=ShowLockRegistry())
        for _ in range(2)
    ]
    requests = [(user, show_id, [SEATS[i], SEATS[i + 1]]) for user, i in enumerate([0, 1, 1, 2, 2, 3])]

    results = _run_concurrently(session_factory, allocators, requests)
    winners = [r for r in results if r is not None]

    assert winners
    bookings = db.query(Booking).filter(Booking.booking_id.in_(winners)).all()
    claimed = Counter(seat for b in bookings for seat in b.seat_numbers)
    assert all(n == 1 for n in claimed.values())

    held = {
        s.seat_number: s.booking_id
        for s in db.query(ShowSeat).filter(ShowSeat.show_id == show_id, ShowSeat.status == SeatStatusEnum.HELD)
    }
    assert held == {seat: b.booking_id for b in bookings for seat in b.seat_numbers}
    assert db.query(Booking).count() == len(winners)


def test_same_seat_many_users_single_winner(db, session_factory, allocator, make_show):
    show_id = make_show(seats=SEATS)
    requests = [(user, show_id, ["A5"]) for user in range(10)]

    results = _run_concurrently(session_factory, allocator, requests)

    assert len([r for r in results if r is not None]) == 1
    assert db.query(Booking).filter(Booking.booking_status == BookingStatusEnum.PENDING).count() == 1


def test_different_shows_do_not_block_each_other(db, session_factory, allocator, make_show):
    shows = [make_show(seats=SEATS) for _ in range(3)]
    requests = [(user, show_id, ["A1", "A2"]) for user, show_id in enumerate(shows)]

    results = _run_concurrently(session_factory, allocator, requests)

    assert all(r is not None for r in results)


def test_concurrent_confirm_and_release_have_one_outcome(db, session_factory, allocator, make_show):
    show_id = make_show(seats=SEATS)
    booking = allocator.create_booking(db, show_id, user_id=1, seat_numbers=["A1", "A2"])
    barrier = threading.Barrier(2)

    def confirm():
        session = session_factory()
        try:
            barrier.wait()
            return allocator.confirm_booking(session, booking.booking_id).booking_status
        finally:
            session.close()

    def release():
        session = session_factory()
        try:
            barrier.wait()
            return allocator.release_hold(session, booking.booking_id).booking_status
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=2) as pool:
        confirm_future = pool.submit(confirm)
        release_future = pool.submit(release)
        release_status = release_future.result()
        try:
            confirm_status = confirm_future.result()
        except Exception as exc:
            confirm_status = type(exc).__name__

    db.expire_all()
    final = db.query(Booking).filter(Booking.booking_id == booking.booking_id).one().booking_status
    seats = {
        s.seat_number: s.status
        for s in db.query(ShowSeat).filter(ShowSeat.show_id == show_id, ShowSeat.seat_number.in_(["A1", "A2"]))
    }

    if final == BookingStatusEnum.PAID:
        assert confirm_status == BookingStatusEnum.PAID
        assert release_status == BookingStatusEnum.PAID
        assert set(seats.values()) == {SeatStatusEnum.BOOKED}
    else:
        assert final == BookingStatusEnum.CANCELLED
        assert confirm_status == "BookingExpired"
        assert set(seats.values()) == {SeatStatusEnum.AVAILABLE}
