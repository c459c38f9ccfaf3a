"""Collaborators the engine reads from: rating history and the candidate pool.

The engine never talks to storage itself. Sources are plain synchronous
objects; the service runs them off the event loop under a timeout.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping, Protocol, Sequence

from sqlalchemy.engine import Engine
from sqlmodel import Session, col, or_, select

from .content import CERTIFICATION_ORDER, ParentalGuideInfo
from .domain import Genre, MovieCandidate, Query, RatingRecord
from .models import Movie, ParentalGuide, Rating
from .moods import MOOD_TABLE, MoodRule, preferred_genre_ids, rules_for


logger = logging.getLogger("tonight.sources")


class RatingSource(Protocol):
    name: str

    def fetch_ratings(self, member_ids: Sequence[str]) -> list[RatingRecord]: ...

    def fetch_genres(self, movie_ids: Iterable[int]) -> dict[int, list[Genre]]: ...


@dataclass(frozen=True)
class CandidateHints:
    """Query-derived hints a catalog may use to narrow its pool; the engine re-checks everything."""

    genre_ids: tuple[int, ...] = ()
    max_runtime: int | None = None
    content_rating: str | None = None
    release_from: date | None = None
    release_to: date | None = None
    provider_ids: tuple[int, ...] = ()
    acclaimed: bool = False
    page: int = 1
    limit: int = 400

    @classmethod
    def from_query(cls, q: Query, limit: int = 400, table: Mapping[str, MoodRule] = MOOD_TABLE) -> "CandidateHints":
        release_from = release_to = None
        if q.era is not None:
            if q.era.start_year is not None:
                release_from = date(q.era.start_year, 1, 1)
            release_to = date(q.era.end_year, 12, 31)
        elif q.start_year is not None:
            release_from = date(q.start_year, 1, 1)
        # moods are ORed: a narrowing is only safe when every selected mood can use it
        rules = rules_for(q.moods, table)
        genre_ids = tuple(preferred_genre_ids(q.moods, table)) if rules and all(r.genre_ids for r in rules) else ()
        acclaimed = bool(rules) and all(r.min_vote_average is not None for r in rules)
        return cls(
            genre_ids=genre_ids,
            max_runtime=q.max_runtime,
            content_rating=q.content_rating,
            release_from=release_from,
            release_to=release_to,
            provider_ids=tuple(sorted(q.streaming_provider_ids)),
            acclaimed=acclaimed,
            page=q.page,
            limit=limit,
        )


class CandidateSource(Protocol):
    name: str

    def fetch_candidate_pool(self, hints: CandidateHints) -> list[MovieCandidate]: ...


def genres_from_json(raw: list | None) -> tuple[Genre, ...]:
    out = []
    for g in raw or []:
        if isinstance(g, dict) and g.get("id") is not None:
            out.append(Genre(id=int(g["id"]), name=str(g.get("name") or "")))
    return tuple(out)


def movie_to_candidate(m: Movie, guide: ParentalGuide | None) -> MovieCandidate:
    pg = None
    if guide is not None:
        pg = ParentalGuideInfo.from_raw(
            {
                "violence": guide.violence,
                "sex_nudity": guide.sex_nudity,
                "profanity": guide.profanity,
                "substances": guide.substances,
                "frightening": guide.frightening,
            }
        )
    return MovieCandidate(
        id=int(m.id),
        title=m.title,
        genres=genres_from_json(m.genres),
        runtime=m.runtime,
        release_date=m.release_date,
        certification=m.certification,
        vote_average=m.vote_average,
        vote_count=m.vote_count,
        popularity=m.popularity,
        overview=m.overview,
        poster_path=m.poster_path,
        provider_ids=frozenset(int(p) for p in (m.provider_ids or [])),
        parental_guide=pg,
    )


class SqlRatingSource:
    name = "ratings"

    def __init__(self, engine: Engine):
        self.engine = engine

    def fetch_ratings(self, member_ids: Sequence[str]) -> list[RatingRecord]:
        if not member_ids:
            return []
        with Session(self.engine) as s:
            rows = s.exec(
                select(Rating).where(col(Rating.member_id).in_(list(member_ids))).order_by(Rating.id)
            ).all()
        return [RatingRecord(member_id=r.member_id, movie_id=int(r.movie_id), score=float(r.score), rated_at=r.rated_at) for r in rows]

    def fetch_genres(self, movie_ids: Iterable[int]) -> dict[int, list[Genre]]:
        ids = sorted(set(int(i) for i in movie_ids))
        if not ids:
            return {}
        with Session(self.engine) as s:
            rows = s.exec(select(Movie.id, Movie.genres).where(col(Movie.id).in_(ids))).all()
        return {int(mid): list(genres_from_json(genres)) for mid, genres in rows}


def catalog_conditions(hints: CandidateHints) -> list:
    """WHERE clauses that only drop rows the engine's filters would drop anyway.

    Applied before LIMIT so the cap never hides matches further down the catalog.
    Providers and genres live in JSON columns and are left to the engine.
    """
    conds = []
    if hints.max_runtime:
        conds.append(col(Movie.runtime).is_not(None))
        conds.append(col(Movie.runtime) > 0)
        conds.append(col(Movie.runtime) <= hints.max_runtime)
    if hints.release_from or hints.release_to:
        conds.append(col(Movie.release_date).is_not(None))
    if hints.release_from:
        conds.append(col(Movie.release_date) >= hints.release_from)
    if hints.release_to:
        conds.append(col(Movie.release_date) <= hints.release_to)
    if hints.content_rating in CERTIFICATION_ORDER:
        ceiling = CERTIFICATION_ORDER[hints.content_rating]
        above = [c for c, rank in CERTIFICATION_ORDER.items() if rank > ceiling]
        if above:
            # missing and unrecognised certifications pass
            conds.append(or_(col(Movie.certification).is_(None), col(Movie.certification).not_in(above)))
    return conds


class SqlCandidateSource:
    """Local catalog: the most popular rows matching the hard constraints, capped at hints.limit."""

    name = "candidates"

    def __init__(self, engine: Engine):
        self.engine = engine

    def fetch_candidate_pool(self, hints: CandidateHints) -> list[MovieCandidate]:
        stmt = select(Movie)
        conds = catalog_conditions(hints)
        if conds:
            stmt = stmt.where(*conds)
        with Session(self.engine) as s:
            movies = s.exec(
                stmt.order_by(col(Movie.popularity).desc(), Movie.id).limit(max(0, hints.limit))
            ).all()
            ids = [m.id for m in movies]
            guides = {}
            if ids:
                guides = {g.movie_id: g for g in s.exec(select(ParentalGuide).where(col(ParentalGuide.movie_id).in_(ids))).all()}
            return [movie_to_candidate(m, guides.get(m.id)) for m in movies]


@dataclass
class InMemoryRatingSource:
    ratings: list[RatingRecord] = field(default_factory=list)
    genres: dict[int, list[Genre]] = field(default_factory=dict)
    name: str = "ratings"

    def fetch_ratings(self, member_ids: Sequence[str]) -> list[RatingRecord]:
        wanted = set(member_ids)
        return [r for r in self.ratings if r.member_id in wanted]

    def fetch_genres(self, movie_ids: Iterable[int]) -> dict[int, list[Genre]]:
        return {i: list(self.genres[i]) for i in movie_ids if i in self.genres}


@dataclass
class InMemoryCandidateSource:
    movies: list[MovieCandidate] = field(default_factory=list)
    name: str = "candidates"

    def fetch_candidate_pool(self, hints: CandidateHints) -> list[MovieCandidate]:
        return list(self.movies[: max(0, hints.limit)])


def pick_candidate_source(engine: Engine) -> CandidateSource:
    from .settings import settings

    if settings.use_real_tmdb:
        if not settings.tmdb_api_key:
            logger.warning("USE_REAL_TMDB set without TMDB_API_KEY; using local catalog")
            return SqlCandidateSource(engine)
        from services.recsys.adapters.tmdb import TmdbCandidateSource
        from .metrics import ADAPTER_ERRORS

        return TmdbCandidateSource(
            api_key=settings.tmdb_api_key,
            base_url=settings.tmdb_base_url,
            region=settings.tmdb_region,
            discover_pages=settings.tmdb_discover_pages,
            min_vote_count=settings.tmdb_min_vote_count,
            on_error=ADAPTER_ERRORS.labels(adapter="tmdb").inc,
            detail_workers=settings.tmdb_detail_workers,
            budget_s=settings.tonight_upstream_timeout_s,
        )
    return SqlCandidateSource(engine)
