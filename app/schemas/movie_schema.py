from __future__ import annotations

from typing import Optional

from pydantic import Field

from . import ORMModel


class MovieBase(ORMModel):
    title: str = Field(..., max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    duration: int = Field(..., gt=0, description="Duration in minutes")
    genre: Optional[list[str]] = Field(None, description="List of genres")
    language: Optional[list[str]] = Field(None, description="List of languages")
    rating: Optional[float] = Field(None, ge=0, le=5, description="e.g., 4.5 out of 5.0")
    certificate: Optional[str] = Field(None, max_length=10)
    poster_url: Optional[str] = Field(None, max_length=255)
    is_active: bool = True


class MovieCreate(MovieBase):
    pass


class MovieUpdate(ORMModel):
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    duration: Optional[int] = Field(None, gt=0)
    genre: Optional[list[str]] = None
    language: Optional[list[str]] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    certificate: Optional[str] = Field(None, max_length=10)
    poster_url: Optional[str] = Field(None, max_length=255)
    is_active: Optional[bool] = None


class MovieOut(MovieBase):
    movie_id: int
