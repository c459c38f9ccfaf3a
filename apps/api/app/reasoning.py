from __future__ import annotations

from typing import Protocol, Sequence

from .domain import ScoredRecommendation
from .taste import GroupProfile


class ReasoningSource(Protocol):
    def reasoning_for(
        self,
        recommendations: Sequence[ScoredRecommendation],
        profile: GroupProfile,
        moods: Sequence[str],
    ) -> dict[int, list[str]]: ...


class RuleBasedReasoning:
    """Short, spoiler-free reasons derived from the scores already computed.

    Example: ["Matches 2 of your group's favorite genres", "Highly rated on TMDB"]
    """

    def reasoning_for(
        self,
        recommendations: Sequence[ScoredRecommendation],
        profile: GroupProfile,
        moods: Sequence[str],
    ) -> dict[int, list[str]]:
        solo = profile.member_count == 1
        shared = {g.genre_id: g.genre_name for g in profile.shared_genres}
        out: dict[int, list[str]] = {}
        for rec in recommendations:
            bits: list[str] = []
            matched = [shared[gid] for gid in shared if gid in rec.movie.genre_ids]
            if matched:
                whose = "your" if solo else "your group's"
                noun = "genre" if len(shared) == 1 else "genres"
                bits.append(f"Matches {len(matched)} of {whose} favorite {noun} ({', '.join(matched[:2])})")
            hit_moods = [m for m in moods if m in rec.mood_tags]
            if hit_moods:
                bits.append(f"Fits the {' + '.join(hit_moods)} mood")
            va = rec.movie.vote_average
            if va is not None and va >= 7.5:
                bits.append("Highly rated on TMDB")
            elif va is not None and va >= 7.0:
                bits.append("Well reviewed")
            if rec.seen_by:
                if solo:
                    bits.append("You may have seen this")
                else:
                    n = len(rec.seen_by)
                    bits.append(f"{n} member may have seen this" if n == 1 else f"{n} members may have seen this")
            out[rec.id] = bits
        return out
