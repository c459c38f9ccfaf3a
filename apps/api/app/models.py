from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field

from .settings import settings

try:
    from sqlalchemy.dialects.postgresql import JSONB
except ImportError:  # pragma: no cover - optional dependency
    JSONB = None

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


if settings.use_sqlite:
    JSONType = JSON
else:
    JSONType = JSONB if JSONB is not None else JSON


class Movie(SQLModel, table=True):
    __tablename__ = "movies"
    # TMDB id doubles as the primary key
    id: int = Field(primary_key=True)
    title: str
    overview: Optional[str] = None
    release_date: Optional[date] = None
    runtime: Optional[int] = None
    certification: Optional[str] = None
    vote_average: Optional[float] = None
    vote_count: Optional[int] = None
    popularity: Optional[float] = None
    poster_path: Optional[str] = None
    genres: list = Field(default_factory=list, sa_column=Column(JSONType))  # [{"id": 35, "name": "Comedy"}]
    provider_ids: list = Field(default_factory=list, sa_column=Column(JSONType))
    updated_at: datetime = Field(default_factory=utcnow)


class ParentalGuide(SQLModel, table=True):
    __tablename__ = "parental_guides"
    movie_id: int = Field(foreign_key="movies.id", primary_key=True)
    violence: Optional[str] = None
    sex_nudity: Optional[str] = None
    profanity: Optional[str] = None
    substances: Optional[str] = None
    frightening: Optional[str] = None
    updated_at: datetime = Field(default_factory=utcnow)


class Rating(SQLModel, table=True):
    __tablename__ = "ratings"
    id: Optional[int] = Field(default=None, primary_key=True)
    member_id: str = Field(index=True)
    movie_id: int = Field(foreign_key="movies.id", index=True)
    score: float = Field(ge=0, le=100, description="overall score 0..100")
    rated_at: datetime = Field(default_factory=utcnow)
