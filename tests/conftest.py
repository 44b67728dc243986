import os
import tempfile
from datetime import datetime, timedelta

# must be set before the app modules read their settings
_IMPORT_DIR = tempfile.mkdtemp(prefix="movie-booking-")
os.environ["DATABASE_URL"] = f"sqlite:///{_IMPORT_DIR}/import.db"
os.environ["ENABLE_BACKGROUND_WORKERS"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from crud.booking_crud import BookingAllocator, get_booking_allocator
from database import Base, get_db
from main import app
from model import Movie, Screen, SeatStatusEnum, Show, ShowSeat, ShowStatusEnum
from utils.booking_notifier import BookingNotifier

START = datetime(2030, 1, 1, 12, 0, 0)


class FakeClock:
    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingNotifier(BookingNotifier):
    """Keeps events in memory instead of writing them to Redis."""

    def __init__(self):
        self.events = []

    def publish(self, event: dict) -> None:
        self.events.append(event)

    def types(self) -> list:
        return [e["notification_type"] for e in self.events]


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def allocator(notifier, clock):
    return BookingAllocator(notifier=notifier, hold_window=timedelta(minutes=10), clock=clock)


@pytest.fixture
def client(session_factory, allocator):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_booking_allocator] = lambda: allocator
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_show(db):
    """Seed a movie, a screen and one upcoming show; returns the show id."""

    def _make(seats=("A1", "A2", "A3"), price=250, start=START + timedelta(days=1)):
        movie = Movie(title="Interstellar", duration=169, genre=["Sci-Fi"], language=["English"])
        screen = Screen(cinema_name="PVR Phoenix", screen_name="Audi 1", rows=1, cols=len(seats))
        db.add_all([movie, screen])
        db.flush()
        show = Show(
            movie_id=movie.movie_id,
            screen_id=screen.screen_id,
            start_time=start,
            end_time=start + timedelta(minutes=movie.duration),
            price=price,
            status=ShowStatusEnum.UPCOMING,
        )
        show.seats = [
            ShowSeat(seat_number=label, position=i, status=SeatStatusEnum.AVAILABLE)
            for i, label in enumerate(seats)
        ]
        db.add(show)
        db.commit()
        return show.show_id

    return _make


@pytest.fixture
def seat_statuses(session_factory):
    """Read the seat map through a fresh session so nothing is served from an identity map."""

    def _read(show_id: int) -> dict:
        session = session_factory()
        try:
            rows = session.query(ShowSeat).filter(ShowSeat.show_id == show_id).order_by(ShowSeat.position).all()
            return {r.seat_number: r.status for r in rows}
        finally:
            session.close()

    return _read

