from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from .domain import Genre, RatingRecord


DEFAULT_TOP_K = 5


@dataclass(frozen=True)
class GenrePreference:
    genre_id: int
    genre_name: str
    avg_score: float
    rating_count: int


@dataclass(frozen=True)
class SharedGenre(GenrePreference):
    rank: float = 0.0
    member_count: int = 0


@dataclass(frozen=True)
class GroupProfile:
    member_count: int
    shared_genres: tuple[SharedGenre, ...]
    total_ratings: int

    @property
    def is_cold_start(self) -> bool:
        return self.total_ratings == 0

    def genre_ranks(self) -> dict[int, float]:
        return {g.genre_id: g.rank for g in self.shared_genres}


def latest_ratings(ratings: Iterable[RatingRecord]) -> list[RatingRecord]:
    """Keep one rating per (member, movie): the most recent by rated_at, later input wins ties."""
    best: dict[tuple[str, int], tuple[int, RatingRecord]] = {}
    for pos, r in enumerate(ratings):
        key = (r.member_id, r.movie_id)
        cur = best.get(key)
        if cur is None:
            best[key] = (pos, r)
            continue
        prev = cur[1]
        if prev.rated_at is None or r.rated_at is None or r.rated_at >= prev.rated_at:
            best[key] = (pos, r)
    return [r for _, r in sorted(best.values(), key=lambda t: t[0])]


def aggregate_member_genres(
    ratings: Iterable[RatingRecord],
    genre_index: Mapping[int, Sequence[Genre]],
) -> list[GenrePreference]:
    """Per-genre mean score and rating count for one member's history.

    Multi-genre movies count toward each of their genres. Movies missing from
    the index contribute nothing. No ratings gives an empty list.
    """
    sums: dict[int, float] = defaultdict(float)
    counts: dict[int, int] = defaultdict(int)
    names: dict[int, str] = {}
    for r in latest_ratings(ratings):
        for g in genre_index.get(r.movie_id, ()):
            sums[g.id] += r.score
            counts[g.id] += 1
            names.setdefault(g.id, g.name)
    return [
        GenrePreference(genre_id=gid, genre_name=names[gid], avg_score=sums[gid] / counts[gid], rating_count=counts[gid])
        for gid in sorted(counts)
    ]


def build_group_profile(
    member_ids: Sequence[str],
    preferences: Mapping[str, Sequence[GenrePreference]],
    top_k: int = DEFAULT_TOP_K,
) -> GroupProfile:
    avgs: dict[int, list[float]] = defaultdict(list)
    counts: dict[int, int] = defaultdict(int)
    names: dict[int, str] = {}
    total = 0
    for mid in member_ids:
        for pref in preferences.get(mid, ()):
            # a member with no rating in a genre is absent from the mean, not a zero
            avgs[pref.genre_id].append(pref.avg_score)
            counts[pref.genre_id] += pref.rating_count
            names.setdefault(pref.genre_id, pref.genre_name)
            total += pref.rating_count

    combined: list[SharedGenre] = []
    for gid, member_avgs in avgs.items():
        combined_avg = sum(member_avgs) / len(member_avgs)
        combined_count = counts[gid]
        combined.append(
            SharedGenre(
                genre_id=gid,
                genre_name=names[gid],
                avg_score=combined_avg,
                rating_count=combined_count,
                rank=combined_avg * math.log1p(combined_count),
                member_count=len(member_avgs),
            )
        )
    combined.sort(key=lambda g: (-g.rank, -g.rating_count, g.genre_id))
    return GroupProfile(
        member_count=len(member_ids),
        shared_genres=tuple(combined[: max(0, top_k)]),
        total_ratings=total,
    )


def profile_from_ratings(
    member_ids: Sequence[str],
    ratings: Iterable[RatingRecord],
    genre_index: Mapping[int, Sequence[Genre]],
    top_k: int = DEFAULT_TOP_K,
) -> GroupProfile:
    by_member: dict[str, list[RatingRecord]] = defaultdict(list)
    wanted = set(member_ids)
    for r in ratings:
        if r.member_id in wanted:
            by_member[r.member_id].append(r)
    prefs = {mid: aggregate_member_genres(by_member.get(mid, []), genre_index) for mid in member_ids}
    return build_group_profile(member_ids, prefs, top_k=top_k)
