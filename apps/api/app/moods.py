"""Mood lookup table.

Each mood is a versioned rule: a set of TMDB genre ids that satisfy it, genres
it refuses outright, and an optional vote-average floor (used by "acclaimed").
Kept apart from the scorer so the table can be tuned and tested on its own.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from .domain import MovieCandidate


MOOD_TABLE_VERSION = 2

# TMDB genre ids
ACTION = 28
ADVENTURE = 12
ANIMATION = 16
COMEDY = 35
CRIME = 80
DRAMA = 18
FAMILY = 10751
HORROR = 27
MYSTERY = 9648
ROMANCE = 10749
THRILLER = 53
WAR = 10752

ACCLAIMED_MIN_VOTE_AVERAGE = 7.0


@dataclass(frozen=True)
class MoodRule:
    name: str
    genre_ids: frozenset[int] = frozenset()
    avoid_genre_ids: frozenset[int] = frozenset()
    min_vote_average: float | None = None

    def matches(self, movie: MovieCandidate) -> bool:
        if self.genre_ids & movie.genre_ids:
            return True
        if self.min_vote_average is not None and movie.vote_average is not None:
            return movie.vote_average >= self.min_vote_average
        return False


MOOD_TABLE: dict[str, MoodRule] = {
    "fun": MoodRule(
        "fun",
        genre_ids=frozenset({COMEDY, ANIMATION, FAMILY, ADVENTURE}),
        avoid_genre_ids=frozenset({HORROR, WAR}),
    ),
    "funny": MoodRule("funny", genre_ids=frozenset({COMEDY, ANIMATION})),
    "intense": MoodRule("intense", genre_ids=frozenset({ACTION, THRILLER, CRIME, HORROR})),
    "emotional": MoodRule("emotional", genre_ids=frozenset({DRAMA, ROMANCE})),
    "mindless": MoodRule("mindless", genre_ids=frozenset({ACTION, COMEDY, ADVENTURE})),
    "scary": MoodRule("scary", genre_ids=frozenset({HORROR, THRILLER, MYSTERY})),
    "acclaimed": MoodRule("acclaimed", min_vote_average=ACCLAIMED_MIN_VOTE_AVERAGE),
}


def rules_for(moods: Iterable[str], table: Mapping[str, MoodRule] = MOOD_TABLE) -> list[MoodRule]:
    return [table[m] for m in moods]


def hard_avoided(rules: list[MoodRule]) -> frozenset[int]:
    # only refuse a genre when every selected mood refuses it
    if not rules:
        return frozenset()
    out = set(rules[0].avoid_genre_ids)
    for r in rules[1:]:
        out &= r.avoid_genre_ids
    return frozenset(out)


def passes_moods(movie: MovieCandidate, rules: list[MoodRule]) -> bool:
    """No moods means any movie passes; otherwise at least one mood must match."""
    if not rules:
        return True
    if hard_avoided(rules) & movie.genre_ids:
        return False
    return any(r.matches(movie) for r in rules)


def mood_tags(movie: MovieCandidate, table: Mapping[str, MoodRule] = MOOD_TABLE) -> list[str]:
    return [name for name, rule in table.items() if rule.matches(movie) and not (rule.avoid_genre_ids & movie.genre_ids)]


def preferred_genre_ids(moods: Iterable[str], table: Mapping[str, MoodRule] = MOOD_TABLE) -> list[int]:
    out: set[int] = set()
    for r in rules_for(moods, table):
        out |= r.genre_ids
    return sorted(out)
