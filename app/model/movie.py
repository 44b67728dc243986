from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, JSON
from sqlalchemy.orm import relationship
from database import Base
from utils.helper import utcnow

class Movie(Base):
    __tablename__="movies"
    movie_id=Column(Integer, primary_key=True, index=True)
    title=Column(String(200), nullable=False)
    description=Column(String(1000), nullable=True)
    duration=Column(Integer, nullable=False)  # in minutes
    genre=Column(JSON, nullable=True)  # list of genres
    language=Column(JSON, nullable=True)  # list of languages
    rating=Column(Float, nullable=True)  # e.g., 4.5 out of 5.0
    certificate=Column(String(10), nullable=True)
    poster_url=Column(String(255), nullable=True)
    is_active=Column(Boolean, default=True)
    created_at=Column(DateTime, default=utcnow, nullable=False)

    shows = relationship("Show", back_populates="movie", cascade="all,delete-orphan")
