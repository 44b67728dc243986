from datetime import timedelta

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from crud.base import CRUDBase
from model import Movie, Screen, SeatStatusEnum, Show, ShowSeat, ShowStatusEnum
from schemas.theatre_schema import ShowCreate
from utils.helper import seat_grid, to_naive_utc


class CRUDShow(CRUDBase[Show, ShowCreate, ShowCreate]):
    def get_all(self, db: Session, skip=0, limit=10, filters=None):
        query = db.query(Show)
        filters = filters or {}
        for key in ("movie_id", "screen_id", "status"):
            if filters.get(key) is not None:
                query = query.filter(getattr(Show, key) == filters[key])
        if filters.get("starts_after") is not None:
            query = query.filter(Show.start_time >= to_naive_utc(filters["starts_after"]))
        return query.order_by(Show.start_time, Show.show_id).offset(skip).limit(limit).all()

    def create_with_layout(self, db: Session, show_in: ShowCreate) -> Show:
        # 1) Fetch movie duration and screen grid
        movie = db.query(Movie).filter(Movie.movie_id == show_in.movie_id).first()
        if not movie:
            raise HTTPException(status_code=404, detail="Movie not found")
        screen = db.query(Screen).filter(Screen.screen_id == show_in.screen_id).first()
        if not screen:
            raise HTTPException(status_code=404, detail="Screen not found")
        if not screen.is_available:
            raise HTTPException(status_code=400, detail="Screen is not available for scheduling")

        # 2) Compute end_time from start + duration
        start = to_naive_utc(show_in.start_time)
        end = start + timedelta(minutes=int(movie.duration))

        # 3) Overlap check on the same screen: existing.start < new.end AND existing.end > new.start
        overlap = (
            db.query(Show)
            .filter(
                Show.screen_id == show_in.screen_id,
                Show.status != ShowStatusEnum.CANCELLED,
                Show.start_time < end,
                Show.end_time > start,
            )
            .first()
        )
        if overlap:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Overlapping show {overlap.show_id} exists for this screen",
            )

        # 4) Create the show and its seat layout in one transaction
        layout = show_in.seat_numbers or seat_grid(screen.rows, screen.cols)
        show = Show(
            movie_id=show_in.movie_id,
            screen_id=show_in.screen_id,
            start_time=start,
            end_time=end,
            price=show_in.price,
            status=ShowStatusEnum.UPCOMING,
        )
        show.seats = [
            ShowSeat(seat_number=label, position=i, status=SeatStatusEnum.AVAILABLE)
            for i, label in enumerate(layout)
        ]
        db.add(show)
        self._commit(db)
        db.refresh(show)
        return show


show_crud = CRUDShow(Show, id_field="show_id")
