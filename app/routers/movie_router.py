from fastapi import APIRouter, Depends, status
from typing import List, Optional
from schemas.movie_schema import MovieCreate, MovieUpdate, MovieOut
from crud.movie_crud import movie_crud
from sqlalchemy.orm import Session
from database import get_db
router = APIRouter(
    prefix="/movies", tags=["movies"]

)

@router.post("/", response_model=MovieOut, status_code=status.HTTP_201_CREATED)
def create_movie(movie: MovieCreate, db: Session = Depends(get_db)):
    return movie_crud.create(db=db, obj_in=movie)


@router.get("/", response_model=List[MovieOut])
def get_all_movies(
    db: Session = Depends(get_db),
    skip: int = 0,
    limit: int = 10,
    genre: Optional[str] = None,
    language: Optional[str] = None,
    is_active: Optional[bool] = None,
):
    filters = {
        "genre": genre,
        "language": language,
        "is_active": is_active,
    }
    return movie_crud.get_all(db=db, skip=skip, limit=limit, filters=filters)

@router.get("/{movie_id}", response_model=MovieOut)
def get_movie(movie_id: int, db: Session = Depends(get_db)):
    return movie_crud.get(db=db, id=movie_id)

@router.put("/{movie_id}", response_model=MovieOut)
def update_movie(movie_id: int, movie_update: MovieUpdate, db: Session = Depends(get_db)):
    db_movie = movie_crud.get(db=db, id=movie_id)
    return movie_crud.update(db=db, db_obj=db_movie, obj_in=movie_update)

@router.delete("/{movie_id}")
def delete_movie(movie_id: int, db: Session = Depends(get_db)):
    return movie_crud.remove(db=db, id=movie_id)
