from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

import requests

from apps.api.app.content import normalize_certification
from apps.api.app.domain import Genre, MovieCandidate
from apps.api.app.sources import CandidateHints
from .util import with_backoff


logger = logging.getLogger("tonight.adapters.tmdb")

CERT_COUNTRY = "US"


def _parse_date(raw: Optional[str]) -> Optional[date]:
    if not raw:
        return None
    try:
        return datetime.strptime(raw[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def certification_for(release_dates: dict | None, country: str = CERT_COUNTRY) -> Optional[str]:
    """First non-empty theatrical-style certification for the country, if TMDB has one."""
    for entry in (release_dates or {}).get("results", []) or []:
        if (entry.get("iso_3166_1") or "").upper() != country.upper():
            continue
        for rd in entry.get("release_dates", []) or []:
            cert = (rd.get("certification") or "").strip()
            if cert:
                return normalize_certification(cert) or cert
    return None


def flatrate_provider_ids(watch_providers: dict | None, region: str) -> frozenset[int]:
    region_block = ((watch_providers or {}).get("results") or {}).get(region.upper()) or {}
    ids = set()
    for p in region_block.get("flatrate", []) or []:
        pid = p.get("provider_id")
        if pid is not None:
            ids.add(int(pid))
    return frozenset(ids)


class TmdbCandidateSource:
    """Candidate pool from TMDB discover, enriched with per-movie details.

    Discover narrows by the query hints; details supply runtime, US certification
    and the region's flatrate providers. TMDB has no parental guide data, so
    candidates from here carry none (and pass parental ceilings).
    """

    name = "candidates"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.themoviedb.org/3",
        region: str = "US",
        discover_pages: int = 3,
        min_vote_count: int = 50,
        timeout: float = 10.0,
        on_error: Optional[Callable[[], None]] = None,
        detail_workers: int = 8,
        budget_s: float | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.region = region
        self.discover_pages = max(1, int(discover_pages))
        self.min_vote_count = int(min_vote_count)
        self.timeout = timeout
        self.on_error = on_error
        self.detail_workers = max(1, int(detail_workers))
        # shared by every request of one pool build; past it, candidates go without details
        self.budget_s = budget_s
        self._genre_names: dict[int, str] | None = None
        self._details_cache: dict[int, dict] = {}

    def _get(self, path: str, params: Dict[str, Any] | None = None, deadline: float | None = None) -> dict:
        query = {"api_key": self.api_key, **(params or {})}
        timeout = self.timeout
        if deadline is not None:
            timeout = max(0.1, min(timeout, deadline - time.monotonic()))
        r = with_backoff(lambda: requests.get(f"{self.base_url}{path}", params=query, timeout=timeout))
        if isinstance(r, requests.Response):
            r.raise_for_status()
            try:
                return r.json() or {}
            except ValueError as e:
                raise RuntimeError(f"unreadable TMDB payload from {path}") from e
        return r or {}

    def _record_error(self) -> None:
        if self.on_error is not None:
            self.on_error()

    def genre_names(self) -> dict[int, str]:
        if self._genre_names is None:
            data = self._get("/genre/movie/list", {"language": "en-US"})
            self._genre_names = {int(g["id"]): g.get("name", "") for g in data.get("genres", []) if g.get("id") is not None}
        return self._genre_names

    def discover_params(self, hints: CandidateHints, page: int) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "sort_by": "popularity.desc",
            "include_adult": "false",
            "vote_count.gte": self.min_vote_count,
            "region": self.region,
            "page": page,
        }
        if hints.genre_ids:
            # pipe means OR in TMDB
            params["with_genres"] = "|".join(str(g) for g in hints.genre_ids)
        if hints.max_runtime:
            params["with_runtime.lte"] = hints.max_runtime
        if hints.content_rating:
            params["certification_country"] = CERT_COUNTRY
            params["certification.lte"] = hints.content_rating
        if hints.release_from:
            params["primary_release_date.gte"] = hints.release_from.isoformat()
        if hints.release_to:
            params["primary_release_date.lte"] = hints.release_to.isoformat()
        if hints.provider_ids:
            params["with_watch_providers"] = "|".join(str(p) for p in hints.provider_ids)
            params["watch_region"] = self.region
        if hints.acclaimed:
            params["vote_average.gte"] = 7
        return params

    def details(self, movie_id: int, deadline: float | None = None) -> dict | None:
        if movie_id in self._details_cache:
            return self._details_cache[movie_id]
        if deadline is not None and time.monotonic() >= deadline:
            return None
        try:
            data = self._get(f"/movie/{movie_id}", {"append_to_response": "release_dates,watch/providers"}, deadline)
        except Exception as e:
            self._record_error()
            logger.warning("tmdb_details_failed", extra={"movie_id": movie_id, "error": repr(e)})
            return None
        self._details_cache[movie_id] = data
        return data

    def to_candidate(self, item: dict, detail: dict | None) -> MovieCandidate:
        names = self.genre_names()
        if detail and detail.get("genres"):
            genres = tuple(Genre(id=int(g["id"]), name=g.get("name", "")) for g in detail["genres"])
        else:
            genres = tuple(Genre(id=int(gid), name=names.get(int(gid), "")) for gid in item.get("genre_ids", []) or [])
        detail = detail or {}
        return MovieCandidate(
            id=int(item["id"]),
            title=item.get("title") or detail.get("title") or "",
            genres=genres,
            runtime=detail.get("runtime") or None,
            release_date=_parse_date(item.get("release_date") or detail.get("release_date")),
            certification=certification_for(detail.get("release_dates")),
            vote_average=item.get("vote_average"),
            vote_count=item.get("vote_count"),
            popularity=item.get("popularity"),
            overview=item.get("overview"),
            poster_path=item.get("poster_path"),
            provider_ids=flatrate_provider_ids(detail.get("watch/providers"), self.region),
        )

    def details_for(self, movie_ids: List[int], deadline: float | None = None) -> dict[int, dict | None]:
        out: dict[int, dict | None] = {}
        with ThreadPoolExecutor(max_workers=self.detail_workers) as executor:
            futures = {executor.submit(self.details, mid, deadline): mid for mid in movie_ids}
            for fut in as_completed(futures):
                out[futures[fut]] = fut.result()
        return out

    def fetch_candidate_pool(self, hints: CandidateHints) -> List[MovieCandidate]:
        deadline = time.monotonic() + self.budget_s if self.budget_s else None
        items: list[dict] = []
        seen: set[int] = set()
        try:
            for page in range(1, self.discover_pages + 1):
                if page > 1 and deadline is not None and time.monotonic() >= deadline:
                    break
                data = self._get("/discover/movie", self.discover_params(hints, page), deadline)
                for it in data.get("results", []) or []:
                    if it.get("id") is None or int(it["id"]) in seen:
                        continue
                    seen.add(int(it["id"]))
                    items.append(it)
                if page >= int(data.get("total_pages") or 1) or len(items) >= hints.limit:
                    break
        except Exception:
            self._record_error()
            raise
        items = items[: max(0, hints.limit)]
        details = self.details_for([int(it["id"]) for it in items], deadline)
        out = [self.to_candidate(it, details.get(int(it["id"]))) for it in items]
        # degraded candidates carry no runtime, certification or providers
        degraded = sum(1 for it in items if details.get(int(it["id"])) is None)
        logger.info("tmdb_pool", extra={"count": len(out), "pages": self.discover_pages, "degraded": degraded})
        return out
