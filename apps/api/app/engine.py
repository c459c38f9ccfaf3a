"""Tonight's pick engine: aggregate -> filter -> score -> rank -> paginate.

Pure and synchronous. Callers hand in everything the request needs (ratings,
genre index, candidate pool) and get back a page plus the group profile. No
state survives the call; "shuffle" is the same query resubmitted with page + 1.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from .domain import Genre, MovieCandidate, Query, RatingRecord, ScoredRecommendation
from .errors import InvalidQuery
from .filters import apply_filters, violations
from .moods import MOOD_TABLE, MoodRule, passes_moods, rules_for
from .ranking import DEFAULT_PAGE_SIZE, Page, dedupe_franchises, paginate, rank
from .scoring import ScoringWeights, score_candidate, score_candidates
from .seen import annotate_seen_by, seen_by, seen_by_everyone, seen_index
from .taste import DEFAULT_TOP_K, GroupProfile, profile_from_ratings


logger = logging.getLogger("tonight.engine")


@dataclass(frozen=True)
class EngineConfig:
    page_size: int = DEFAULT_PAGE_SIZE
    top_k: int = DEFAULT_TOP_K
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    exclude_seen_by_all: bool = False
    dedupe_franchises: bool = False
    moods: Mapping[str, MoodRule] = field(default_factory=lambda: MOOD_TABLE)

    @classmethod
    def from_settings(cls, s=None) -> "EngineConfig":
        if s is None:
            from .settings import settings as s
        return cls(
            page_size=int(s.tonight_page_size),
            top_k=int(s.tonight_top_k_genres),
            weights=ScoringWeights(
                genre_weight=float(s.tonight_genre_weight),
                vote_weight=float(s.tonight_vote_weight),
                cold_start_genre_match=int(s.tonight_cold_start_genre_match),
            ),
            exclude_seen_by_all=bool(s.tonight_exclude_seen_by_all),
            dedupe_franchises=bool(s.tonight_dedupe_franchises),
        )


@dataclass
class TonightPick:
    recommendations: list[ScoredRecommendation]
    profile: GroupProfile
    page: Page
    filter_drops: Counter = field(default_factory=Counter)


def unique_candidates(candidates: Iterable[MovieCandidate]) -> list[MovieCandidate]:
    seen: set[int] = set()
    out: list[MovieCandidate] = []
    for c in candidates:
        if c.id in seen:
            continue
        seen.add(c.id)
        out.append(c)
    return out


def _check_moods(query: Query, config: EngineConfig) -> None:
    unknown = [m for m in query.moods if m not in config.moods]
    if unknown:
        raise InvalidQuery(f"unknown mood(s): {', '.join(unknown)}")


def recommend(
    query: Query,
    ratings: Sequence[RatingRecord],
    genre_index: Mapping[int, Sequence[Genre]],
    candidates: Iterable[MovieCandidate],
    config: EngineConfig | None = None,
) -> TonightPick:
    config = config or EngineConfig()
    _check_moods(query, config)

    profile = profile_from_ratings(query.member_ids, ratings, genre_index, top_k=config.top_k)
    if profile.is_cold_start:
        logger.info("cold_start", extra={"member_count": profile.member_count})

    pool = unique_candidates(candidates)
    kept, drops = apply_filters(pool, query)

    idx = seen_index(ratings, query.member_ids)
    if config.exclude_seen_by_all:
        before = len(kept)
        kept = [m for m in kept if not seen_by_everyone(m.id, query.member_ids, idx)]
        if before - len(kept):
            drops["seen_by_all"] += before - len(kept)

    scored, mood_drops = score_candidates(kept, profile, query.moods, config.weights, config.moods)
    if mood_drops:
        drops["mood"] += mood_drops
    annotate_seen_by(scored, query.member_ids, idx)

    ranked = rank(scored)
    if config.dedupe_franchises:
        ranked = dedupe_franchises(ranked)

    page = paginate(ranked, query.page, config.page_size)
    if not page.items:
        logger.info(
            "empty_page",
            extra={"page": query.page, "pool": len(pool), "survivors": len(ranked), "drops": dict(drops)},
        )
    return TonightPick(recommendations=page.items, profile=profile, page=page, filter_drops=drops)


def explain(
    query: Query,
    ratings: Sequence[RatingRecord],
    genre_index: Mapping[int, Sequence[Genre]],
    candidates: Iterable[MovieCandidate],
    config: EngineConfig | None = None,
) -> list[dict]:
    """Per-candidate verdicts for debugging: failed rules, mood match and scores."""
    config = config or EngineConfig()
    _check_moods(query, config)
    profile = profile_from_ratings(query.member_ids, ratings, genre_index, top_k=config.top_k)
    idx = seen_index(ratings, query.member_ids)
    rules = rules_for(query.moods, config.moods)
    rows: list[dict] = []
    for movie in unique_candidates(candidates):
        rec = score_candidate(movie, profile, config.weights, config.moods)
        rows.append(
            {
                "id": movie.id,
                "title": movie.title,
                "violations": violations(movie, query),
                "moodMatch": passes_moods(movie, rules),
                "genreMatchScore": rec.genre_match_score,
                "groupFitScore": rec.group_fit_score,
                "seenBy": seen_by(movie.id, query.member_ids, idx),
            }
        )
    rows.sort(key=lambda r: (bool(r["violations"]) or not r["moodMatch"], -r["groupFitScore"], r["id"]))
    return rows
