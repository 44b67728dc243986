from crud.base import CRUDBase
from model.movie import Movie
from schemas.movie_schema import MovieCreate, MovieUpdate
from sqlalchemy.orm import Session

class CRUDMovie(CRUDBase[Movie, MovieCreate, MovieUpdate]):
    def get_all(self, db: Session, skip=0, limit=10, filters=None):
        query = db.query(Movie)
        filters = filters or {}
        if filters.get("is_active") is not None:
            query = query.filter(Movie.is_active == filters["is_active"])
        movies = query.order_by(Movie.movie_id).all()
        # genre/language are JSON lists; match in Python to stay portable across sqlite and postgres
        genre = filters.get("genre")
        if genre:
            movies = [m for m in movies if genre.lower() in [g.lower() for g in (m.genre or [])]]
        language = filters.get("language")
        if language:
            movies = [m for m in movies if language.lower() in [l.lower() for l in (m.language or [])]]
        return movies[skip:skip + limit]

movie_crud = CRUDMovie(Movie, id_field="movie_id")
