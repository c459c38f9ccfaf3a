from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Mapping

from .domain import MovieCandidate, ScoredRecommendation
from .moods import MOOD_TABLE, MoodRule, mood_tags, passes_moods, rules_for
from .taste import GroupProfile


@dataclass(frozen=True)
class ScoringWeights:
    genre_weight: float = 0.7
    vote_weight: float = 0.3
    cold_start_genre_match: int = 50


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def clamp_score(x: float) -> int:
    return max(0, min(100, round_half_up(x)))


def genre_match_score(movie: MovieCandidate, profile: GroupProfile, neutral: int = 50) -> int:
    """Rank-weighted overlap between the movie's genres and the shared genres, 0..100."""
    ranks = profile.genre_ranks()
    total = sum(ranks.values())
    if not ranks or total <= 0:
        return neutral
    hit = sum(rank for gid, rank in ranks.items() if gid in movie.genre_ids)
    return clamp_score(100.0 * hit / total)


def normalized_vote_average(movie: MovieCandidate) -> float:
    if movie.vote_average is None:
        return 0.0
    return max(0.0, min(100.0, float(movie.vote_average) * 10.0))


def group_fit_score(genre_match: int, movie: MovieCandidate, weights: ScoringWeights) -> int:
    return clamp_score(weights.genre_weight * genre_match + weights.vote_weight * normalized_vote_average(movie))


def score_candidate(
    movie: MovieCandidate,
    profile: GroupProfile,
    weights: ScoringWeights,
    table: Mapping[str, MoodRule] = MOOD_TABLE,
) -> ScoredRecommendation:
    gm = genre_match_score(movie, profile, neutral=weights.cold_start_genre_match)
    return ScoredRecommendation(
        movie=movie,
        group_fit_score=group_fit_score(gm, movie, weights),
        genre_match_score=gm,
        mood_tags=mood_tags(movie, table),
        reasoning=list(movie.reasoning) if movie.reasoning else [],
    )


def score_candidates(
    candidates: Iterable[MovieCandidate],
    profile: GroupProfile,
    moods: Iterable[str],
    weights: ScoringWeights | None = None,
    table: Mapping[str, MoodRule] = MOOD_TABLE,
) -> tuple[list[ScoredRecommendation], int]:
    """Score every candidate that satisfies at least one selected mood.

    Returns the scored list and how many candidates the mood stage eliminated.
    """
    weights = weights or ScoringWeights()
    rules = rules_for(moods, table)
    out: list[ScoredRecommendation] = []
    mood_drops = 0
    for movie in candidates:
        if not passes_moods(movie, rules):
            mood_drops += 1
            continue
        out.append(score_candidate(movie, profile, weights, table))
    return out, mood_drops
