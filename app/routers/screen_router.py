from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from database import get_db
from schemas.theatre_schema import ScreenCreate, ScreenUpdate, ScreenOut
from crud.screen_crud import screen_crud
router = APIRouter(prefix="/screens", tags=["Screens"])

@router.post("/", response_model=ScreenOut, status_code=status.HTTP_201_CREATED)
def create_screen(screen: ScreenCreate, db: Session = Depends(get_db)):
    """Create a new screen"""
    return screen_crud.create(db=db, obj_in=screen)

@router.get("/", response_model=List[ScreenOut])
def get_all_screens(
    db: Session = Depends(get_db),
    skip: int = 0,
    limit: int = 10,
    cinema: Optional[str] = None,
    type: Optional[str] = None,
    min_seats: Optional[int] = None,
    is_available: Optional[bool] = None,
):
    """Fetch all screens"""
    filters = {
        "cinema_name": cinema,
        "screen_type": type,
        "min_seats": min_seats,
        "is_available": is_available,
    }
    return screen_crud.get_all(db=db, skip=skip, limit=limit, filters=filters)


@router.get("/{screen_id}", response_model=ScreenOut)
def get_screen(screen_id: int, db: Session = Depends(get_db)):
    """Fetch a screen by ID"""
    return screen_crud.get(db=db, id=screen_id)

@router.put("/{screen_id}", response_model=ScreenOut)
def update_screen(screen_id: int, screen: ScreenUpdate, db: Session = Depends(get_db)):
    """Update screen details; the seat grid is fixed once shows exist"""
    db_screen = screen_crud.get(db=db, id=screen_id)
    return screen_crud.update(db=db, db_obj=db_screen, obj_in=screen)

@router.delete("/{screen_id}")
def delete_screen(screen_id: int, db: Session = Depends(get_db)):
    """Delete a screen"""
    return screen_crud.remove(db=db, id=screen_id)
