"""Hard constraint filters applied to the candidate pool before scoring.

Every rule is a pure predicate over (movie, query) that only applies when the
matching query field is set. Rules are order-independent; a candidate failing
any active rule never reaches the scorer.

Missing-data policy, per rule:
  runtime        missing runtime FAILS (a runtime ceiling is a promise)
  content rating missing/unrecognised certification PASSES
  era/startYear  missing release date FAILS
  streaming      no listed provider FAILS
  parental       missing guide, or missing category, PASSES
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Callable, Iterable

from .content import CERTIFICATION_ORDER, certification_rank
from .domain import MovieCandidate, Query


logger = logging.getLogger("tonight.filters")


def runtime_ok(movie: MovieCandidate, q: Query) -> bool:
    if q.max_runtime is None:
        return True
    if movie.runtime is None or movie.runtime <= 0:
        return False
    return movie.runtime <= q.max_runtime


def content_rating_ok(movie: MovieCandidate, q: Query) -> bool:
    if not q.content_rating:
        return True
    rank = certification_rank(movie.certification)
    if rank is None:
        return True
    return rank <= CERTIFICATION_ORDER[q.content_rating]


def release_window_ok(movie: MovieCandidate, q: Query) -> bool:
    # era takes priority; start_year is ignored whenever an era is set
    if q.era is not None:
        year = movie.release_year
        return year is not None and q.era.contains(year)
    if q.start_year is not None:
        year = movie.release_year
        return year is not None and year >= q.start_year
    return True


def streaming_ok(movie: MovieCandidate, q: Query) -> bool:
    if not q.streaming_provider_ids:
        return True
    return bool(movie.provider_ids & q.streaming_provider_ids)


def parental_ok(movie: MovieCandidate, q: Query) -> bool:
    ceilings = q.parental.active()
    if not ceilings:
        return True
    guide = movie.parental_guide
    if guide is None:
        return True
    for cat, ceiling in ceilings.items():
        lvl = guide.level(cat)
        if lvl is not None and lvl.exceeds(ceiling):
            return False
    return True


def not_excluded(movie: MovieCandidate, q: Query) -> bool:
    return movie.id not in q.exclude_ids


RULES: dict[str, Callable[[MovieCandidate, Query], bool]] = {
    "runtime": runtime_ok,
    "content_rating": content_rating_ok,
    "release_window": release_window_ok,
    "streaming": streaming_ok,
    "parental": parental_ok,
    "excluded": not_excluded,
}


def violations(movie: MovieCandidate, q: Query) -> list[str]:
    return [name for name, rule in RULES.items() if not rule(movie, q)]


def apply_filters(candidates: Iterable[MovieCandidate], q: Query) -> tuple[list[MovieCandidate], Counter]:
    """Return surviving candidates (input order kept) and a per-rule drop count."""
    kept: list[MovieCandidate] = []
    drops: Counter = Counter()
    for movie in candidates:
        failed = violations(movie, q)
        if failed:
            drops.update(failed)
            continue
        kept.append(movie)
    if drops:
        logger.debug("candidates_filtered", extra={"kept": len(kept), "drops": dict(drops)})
    return kept, drops
