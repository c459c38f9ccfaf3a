from __future__ import annotations

from datetime import date
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .content import PARENTAL_CATEGORIES
from .domain import Query, ScoredRecommendation, make_query
from .moods import MOOD_TABLE
from .ranking import Page
from .taste import GroupProfile, SharedGenre


class _Camel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ParentalFilters(_Camel):
    max_violence: Optional[str] = Field(default=None, alias="maxViolence")
    max_sex_nudity: Optional[str] = Field(default=None, alias="maxSexNudity")
    max_profanity: Optional[str] = Field(default=None, alias="maxProfanity")
    max_substances: Optional[str] = Field(default=None, alias="maxSubstances")
    max_frightening: Optional[str] = Field(default=None, alias="maxFrightening")

    def as_ceilings(self) -> dict[str, Optional[str]]:
        return {cat: getattr(self, f"max_{cat}") for cat in PARENTAL_CATEGORIES}


class SoloTonightRequest(_Camel):
    moods: Optional[List[str]] = None
    # single-mood form kept for older clients
    mood: Optional[str] = None
    max_runtime: Optional[int] = Field(default=None, alias="maxRuntime")
    content_rating: Optional[str] = Field(default=None, alias="contentRating")
    era: Optional[str] = None
    start_year: Optional[int] = Field(default=None, alias="startYear")
    streaming_providers: Optional[List[int]] = Field(default=None, alias="streamingProviders")
    parental_filters: Optional[ParentalFilters] = Field(default=None, alias="parentalFilters")
    page: int = 1
    exclude_ids: Optional[List[int]] = Field(default=None, alias="excludeIds")

    def to_query(self, member_ids: List[str]) -> Query:
        moods = list(self.moods or [])
        if self.mood and not moods:
            moods = [self.mood]
        return make_query(
            member_ids=member_ids,
            moods=moods,
            max_runtime=self.max_runtime,
            content_rating=self.content_rating,
            era=self.era,
            start_year=self.start_year,
            streaming_provider_ids=self.streaming_providers,
            parental=self.parental_filters.as_ceilings() if self.parental_filters else None,
            page=self.page,
            exclude_ids=self.exclude_ids,
            known_moods=tuple(MOOD_TABLE),
        )


class TonightRequest(SoloTonightRequest):
    member_ids: List[str] = Field(default_factory=list, alias="memberIds")


class GenreOut(_Camel):
    id: int
    name: str


class ParentalGuideOut(_Camel):
    violence: Optional[str] = None
    sex_nudity: Optional[str] = Field(default=None, alias="sexNudity")
    profanity: Optional[str] = None
    substances: Optional[str] = None
    frightening: Optional[str] = None


class RecommendationOut(_Camel):
    id: int
    title: str
    overview: Optional[str] = None
    poster_path: Optional[str] = Field(default=None, alias="posterPath")
    release_date: Optional[date] = Field(default=None, alias="releaseDate")
    runtime: Optional[int] = None
    genres: List[GenreOut] = []
    vote_average: Optional[float] = Field(default=None, alias="voteAverage")
    certification: Optional[str] = None
    streaming_providers: List[int] = Field(default_factory=list, alias="streamingProviders")
    parental_guide: Optional[ParentalGuideOut] = Field(default=None, alias="parentalGuide")
    mood_tags: List[str] = Field(default_factory=list, alias="moodTags")
    group_fit_score: int = Field(alias="groupFitScore")
    genre_match_score: int = Field(alias="genreMatchScore")
    seen_by: List[str] = Field(default_factory=list, alias="seenBy")
    reasoning: List[str] = []

    @classmethod
    def from_scored(cls, rec: ScoredRecommendation) -> "RecommendationOut":
        m = rec.movie
        pg = None
        if m.parental_guide is not None:
            levels = {cat: m.parental_guide.level(cat) for cat in PARENTAL_CATEGORIES}
            pg = ParentalGuideOut(**{cat: (lvl.value if lvl else None) for cat, lvl in levels.items()})
        return cls(
            id=m.id,
            title=m.title,
            overview=m.overview,
            poster_path=m.poster_path,
            release_date=m.release_date,
            runtime=m.runtime,
            genres=[GenreOut(id=g.id, name=g.name) for g in m.genres],
            vote_average=m.vote_average,
            certification=m.certification,
            streaming_providers=sorted(m.provider_ids),
            parental_guide=pg,
            mood_tags=list(rec.mood_tags),
            group_fit_score=rec.group_fit_score,
            genre_match_score=rec.genre_match_score,
            seen_by=list(rec.seen_by),
            reasoning=list(rec.reasoning),
        )


class SharedGenreOut(_Camel):
    genre_id: int = Field(alias="genreId")
    genre_name: str = Field(alias="genreName")
    avg_score: float = Field(alias="avgScore")
    rating_count: int = Field(alias="ratingCount")
    rank: float

    @classmethod
    def from_shared(cls, g: SharedGenre) -> "SharedGenreOut":
        return cls(
            genre_id=g.genre_id,
            genre_name=g.genre_name,
            avg_score=round(g.avg_score, 2),
            rating_count=g.rating_count,
            rank=round(g.rank, 4),
        )


class GroupProfileOut(_Camel):
    member_count: int = Field(alias="memberCount")
    shared_genres: List[SharedGenreOut] = Field(alias="sharedGenres")
    total_ratings: int = Field(alias="totalRatings")

    @classmethod
    def from_profile(cls, p: GroupProfile) -> "GroupProfileOut":
        return cls(
            member_count=p.member_count,
            shared_genres=[SharedGenreOut.from_shared(g) for g in p.shared_genres],
            total_ratings=p.total_ratings,
        )


class UserProfileOut(_Camel):
    shared_genres: List[SharedGenreOut] = Field(alias="sharedGenres")
    total_ratings: int = Field(alias="totalRatings")


class PageMeta(_Camel):
    page: int
    page_size: int = Field(alias="pageSize")
    total_candidates: int = Field(alias="totalCandidates")
    has_more: bool = Field(alias="hasMore")

    @staticmethod
    def meta(p: Page) -> dict:
        return {"page": p.page, "page_size": p.page_size, "total_candidates": p.total, "has_more": p.has_more}


class TonightResponse(PageMeta):
    recommendations: List[RecommendationOut]
    group_profile: GroupProfileOut = Field(alias="groupProfile")


class SoloTonightResponse(PageMeta):
    recommendations: List[RecommendationOut]
    user_profile: UserProfileOut = Field(alias="userProfile")


class MoodOut(_Camel):
    name: str
    genre_ids: List[int] = Field(alias="genreIds")
    avoid_genre_ids: List[int] = Field(alias="avoidGenreIds")
    min_vote_average: Optional[float] = Field(default=None, alias="minVoteAverage")


class TonightOptions(_Camel):
    moods: List[MoodOut]
    eras: List[str]
    content_ratings: List[str] = Field(alias="contentRatings")
    content_levels: List[str] = Field(alias="contentLevels")
    page_size: int = Field(alias="pageSize")


class ErrorOut(BaseModel):
    error: str
    detail: str
    retryable: bool = False
