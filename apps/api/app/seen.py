from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Sequence

from .domain import RatingRecord, ScoredRecommendation


def seen_index(ratings: Iterable[RatingRecord], member_ids: Sequence[str]) -> dict[int, set[str]]:
    wanted = set(member_ids)
    out: dict[int, set[str]] = defaultdict(set)
    for r in ratings:
        if r.member_id in wanted:
            out[r.movie_id].add(r.member_id)
    return dict(out)


def seen_by(movie_id: int, member_ids: Sequence[str], index: dict[int, set[str]]) -> list[str]:
    # any rating counts, whatever the score; query order is kept for display
    raters = index.get(movie_id, set())
    return [mid for mid in member_ids if mid in raters]


def annotate_seen_by(
    recs: Iterable[ScoredRecommendation],
    member_ids: Sequence[str],
    index: dict[int, set[str]],
) -> list[ScoredRecommendation]:
    out = []
    for rec in recs:
        rec.seen_by = seen_by(rec.id, member_ids, index)
        out.append(rec)
    return out


def seen_by_everyone(movie_id: int, member_ids: Sequence[str], index: dict[int, set[str]]) -> bool:
    return len(seen_by(movie_id, member_ids, index)) >= len(member_ids)
