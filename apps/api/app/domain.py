from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Sequence

from .content import ContentLevel, ParentalCeilings, ParentalGuideInfo, normalize_certification
from .errors import InvalidQuery


@dataclass(frozen=True)
class Genre:
    id: int
    name: str


@dataclass(frozen=True)
class RatingRecord:
    member_id: str
    movie_id: int
    score: float
    rated_at: datetime | None = None

    def __post_init__(self):
        if not 0 <= self.score <= 100:
            raise ValueError(f"rating score out of range: {self.score} (member={self.member_id}, movie={self.movie_id})")


@dataclass(frozen=True)
class MovieCandidate:
    id: int
    title: str
    genres: tuple[Genre, ...] = ()
    runtime: int | None = None
    release_date: date | None = None
    certification: str | None = None
    vote_average: float | None = None
    vote_count: int | None = None
    popularity: float | None = None
    overview: str | None = None
    poster_path: str | None = None
    provider_ids: frozenset[int] = frozenset()
    parental_guide: ParentalGuideInfo | None = None
    # Carried through untouched when an upstream already explained the pick
    reasoning: tuple[str, ...] | None = None

    @property
    def genre_ids(self) -> frozenset[int]:
        return frozenset(g.id for g in self.genres)

    @property
    def release_year(self) -> int | None:
        return self.release_date.year if self.release_date else None


@dataclass(frozen=True)
class Era:
    label: str
    start_year: int | None
    end_year: int

    def contains(self, year: int) -> bool:
        if self.start_year is not None and year < self.start_year:
            return False
        return year <= self.end_year


MIN_YEAR, MAX_YEAR = 1, 9999

_DECADE_RE = re.compile(r"^(\d{3})0s$")
ERA_LABELS = ("Pre-40s", "1940s", "1950s", "1960s", "1970s", "1980s", "1990s", "2000s", "2010s", "2020s")


def parse_era(label: str) -> Era:
    text = label.strip()
    if text.lower() == "pre-40s":
        return Era(label="Pre-40s", start_year=None, end_year=1939)
    m = _DECADE_RE.match(text)
    if not m:
        raise InvalidQuery(f"unknown era: {label!r}")
    start = int(m.group(1)) * 10
    return Era(label=f"{start}s", start_year=start, end_year=start + 9)


@dataclass(frozen=True)
class Query:
    member_ids: tuple[str, ...]
    moods: tuple[str, ...] = ()
    max_runtime: int | None = None
    content_rating: str | None = None
    era: Era | None = None
    start_year: int | None = None
    streaming_provider_ids: frozenset[int] = frozenset()
    parental: ParentalCeilings = field(default_factory=ParentalCeilings)
    page: int = 1
    exclude_ids: frozenset[int] = frozenset()

    def with_page(self, page: int) -> "Query":
        return make_query(
            member_ids=self.member_ids,
            moods=self.moods,
            max_runtime=self.max_runtime,
            content_rating=self.content_rating,
            era=self.era.label if self.era else None,
            start_year=self.start_year,
            streaming_provider_ids=self.streaming_provider_ids,
            parental={cat: lvl.value for cat, lvl in self.parental.active().items()},
            page=page,
            exclude_ids=self.exclude_ids,
        )


@dataclass
class ScoredRecommendation:
    movie: MovieCandidate
    group_fit_score: int
    genre_match_score: int
    seen_by: list[str] = field(default_factory=list)
    mood_tags: list[str] = field(default_factory=list)
    reasoning: list[str] = field(default_factory=list)

    @property
    def id(self) -> int:
        return self.movie.id


def make_query(
    *,
    member_ids: Iterable[str] | None,
    moods: Iterable[str] | None = None,
    max_runtime: int | None = None,
    content_rating: str | None = None,
    era: str | None = None,
    start_year: int | None = None,
    streaming_provider_ids: Iterable[int] | None = None,
    parental: dict[str, str | None] | None = None,
    page: int | None = 1,
    exclude_ids: Iterable[int] | None = None,
    known_moods: Sequence[str] | None = None,
) -> Query:
    """Validate caller input and build an immutable Query.

    Raises InvalidQuery for anything the engine should refuse before touching data.
    """
    members: list[str] = []
    for mid in member_ids or []:
        mid = str(mid).strip()
        if mid and mid not in members:
            members.append(mid)
    if not members:
        raise InvalidQuery("at least one member must be selected")

    page = 1 if page is None else int(page)
    if page < 1:
        raise InvalidQuery(f"page must be >= 1, got {page}")

    mood_list: list[str] = []
    for m in moods or []:
        key = str(m).strip().lower()
        if not key or key in mood_list:
            continue
        if known_moods is not None and key not in known_moods:
            raise InvalidQuery(f"unknown mood: {m!r}")
        mood_list.append(key)

    if max_runtime is not None and max_runtime <= 0:
        raise InvalidQuery(f"maxRuntime must be positive, got {max_runtime}")

    if start_year is not None and not MIN_YEAR <= start_year <= MAX_YEAR:
        raise InvalidQuery(f"startYear must be between {MIN_YEAR} and {MAX_YEAR}, got {start_year}")
    parsed_era = parse_era(era) if era else None
    if parsed_era is not None and parsed_era.start_year is not None and parsed_era.start_year < MIN_YEAR:
        raise InvalidQuery(f"unknown era: {era!r}")

    cert = None
    if content_rating:
        cert = normalize_certification(content_rating)
        if cert is None:
            raise InvalidQuery(f"unknown content rating: {content_rating!r}")

    ceilings: dict[str, ContentLevel] = {}
    for cat, raw in (parental or {}).items():
        try:
            lvl = ContentLevel.parse(raw)
        except ValueError as e:
            raise InvalidQuery(str(e)) from e
        if lvl is not None:
            ceilings[cat] = lvl
    try:
        parental_ceilings = ParentalCeilings(**ceilings)
    except TypeError as e:
        raise InvalidQuery(f"unknown parental category in {sorted(ceilings)}") from e

    return Query(
        member_ids=tuple(members),
        moods=tuple(mood_list),
        max_runtime=max_runtime,
        content_rating=cert,
        era=parsed_era,
        start_year=start_year,
        streaming_provider_ids=frozenset(int(p) for p in (streaming_provider_ids or [])),
        parental=parental_ceilings,
        page=page,
        exclude_ids=frozenset(int(i) for i in (exclude_ids or [])),
    )
