from crud.base import CRUDBase
from model.theatre import Screen
from schemas.theatre_schema import ScreenCreate, ScreenUpdate

class CRUDScreen(CRUDBase[Screen, ScreenCreate, ScreenUpdate]):
    def get_all(self, db, skip: int = 0, limit: int = 10, filters: dict = None):
        query = db.query(Screen)

        if filters:
            for attr, value in filters.items():
                if value is None:
                    continue  # skip empty filters

                # custom filter for capacity
                if attr == "min_seats":
                    query = query.filter(Screen.rows * Screen.cols >= value)

                elif hasattr(Screen, attr):
                    query = query.filter(getattr(Screen, attr) == value)

                else:
                    raise ValueError(f"Invalid filter field: {attr}")

        return query.order_by(Screen.screen_id).offset(skip).limit(limit).all()

screen_crud = CRUDScreen(Screen, id_field="screen_id")
