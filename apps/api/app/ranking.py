from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

from .domain import ScoredRecommendation


DEFAULT_PAGE_SIZE = 10


def sort_key(rec: ScoredRecommendation) -> tuple:
    va = rec.movie.vote_average if rec.movie.vote_average is not None else float("-inf")
    return (-rec.group_fit_score, -va, rec.movie.id)


def rank(recs: Sequence[ScoredRecommendation]) -> list[ScoredRecommendation]:
    """Total order: group fit desc, vote average desc, id asc."""
    return sorted(recs, key=sort_key)


@dataclass(frozen=True)
class Page:
    items: list[ScoredRecommendation]
    page: int
    page_size: int
    total: int

    @property
    def has_more(self) -> bool:
        return self.page * self.page_size < self.total


def paginate(ranked: Sequence[ScoredRecommendation], page: int, page_size: int = DEFAULT_PAGE_SIZE) -> Page:
    # past the end is an empty page, never an error
    start = (page - 1) * page_size
    return Page(items=list(ranked[start : start + page_size]), page=page, page_size=page_size, total=len(ranked))


_PART_RE = re.compile(r"\s*[:\-–—]\s*Part\s+\w+$", re.IGNORECASE)
_CHAPTER_RE = re.compile(r"\s*[:\-–—]\s*Chapter\s+\w+$", re.IGNORECASE)
_NUMERAL_RE = re.compile(r"\s+\d+\s*$")
_ROMAN_RE = re.compile(r"\s+[IVXLC]+\s*$")


def base_title(title: str) -> str:
    t = _PART_RE.sub("", title)
    t = _CHAPTER_RE.sub("", t)
    t = _NUMERAL_RE.sub("", t)
    t = _ROMAN_RE.sub("", t)
    return t.strip().lower()


def dedupe_franchises(ranked: Sequence[ScoredRecommendation]) -> list[ScoredRecommendation]:
    """Keep the best-ranked title per franchise; input must already be ranked."""
    seen: set[str] = set()
    out: list[ScoredRecommendation] = []
    for rec in ranked:
        key = base_title(rec.movie.title)
        if key in seen:
            continue
        seen.add(key)
        out.append(rec)
    return out
