from __future__ import annotations

import asyncio
import logging
from typing import Callable, TypeVar

from .domain import Genre, MovieCandidate, Query, RatingRecord
from .engine import EngineConfig, TonightPick, explain, recommend
from .errors import ReasoningUnavailable, UpstreamUnavailable
from .metrics import TONIGHT_COLD_STARTS, TONIGHT_EMPTY_PAGES, TONIGHT_FILTER_DROPS, TONIGHT_UPSTREAM_ERRORS
from .reasoning import ReasoningSource
from .settings import settings
from .sources import CandidateHints, CandidateSource, RatingSource
from .spoiler_lint import scrub_reasoning


logger = logging.getLogger("tonight.service")

T = TypeVar("T")


async def _bounded(source: str, fn: Callable[..., T], *args, timeout: float) -> T:
    """Run a blocking read in a worker thread; timeouts and source failures become UpstreamUnavailable."""
    try:
        return await asyncio.wait_for(asyncio.to_thread(fn, *args), timeout=timeout)
    except asyncio.TimeoutError as e:
        TONIGHT_UPSTREAM_ERRORS.labels(source=source).inc()
        logger.warning("upstream_timeout", extra={"source": source, "timeout_s": timeout})
        raise UpstreamUnavailable(source, f"timed out after {timeout}s") from e
    except ValueError:
        # bad rows are a data error, not an outage
        raise
    except Exception as e:
        TONIGHT_UPSTREAM_ERRORS.labels(source=source).inc()
        logger.warning("upstream_error", extra={"source": source, "error": repr(e)})
        raise UpstreamUnavailable(source, str(e) or type(e).__name__) from e


def _load_history(ratings: RatingSource, member_ids: tuple[str, ...]) -> tuple[list[RatingRecord], dict[int, list[Genre]]]:
    records = ratings.fetch_ratings(member_ids)
    genre_index = ratings.fetch_genres({r.movie_id for r in records})
    return records, genre_index


async def load_inputs(
    query: Query,
    ratings: RatingSource,
    candidates: CandidateSource,
    *,
    timeout: float | None = None,
    pool_limit: int | None = None,
) -> tuple[list[RatingRecord], dict[int, list[Genre]], list[MovieCandidate]]:
    timeout = float(timeout if timeout is not None else settings.tonight_upstream_timeout_s)
    hints = CandidateHints.from_query(query, limit=pool_limit if pool_limit is not None else settings.candidate_pool_limit)
    (records, genre_index), pool = await asyncio.gather(
        _bounded("ratings", _load_history, ratings, query.member_ids, timeout=timeout),
        _bounded("candidates", candidates.fetch_candidate_pool, hints, timeout=timeout),
    )
    return records, genre_index, pool


async def _attach_reasoning(pick: TonightPick, query: Query, reasoning: ReasoningSource, timeout: float) -> None:
    pending = [rec for rec in pick.recommendations if not rec.reasoning]
    if not pending:
        return
    try:
        texts = await asyncio.wait_for(
            asyncio.to_thread(reasoning.reasoning_for, pending, pick.profile, query.moods),
            timeout=timeout,
        )
    except (asyncio.TimeoutError, ReasoningUnavailable) as e:
        logger.warning("reasoning_unavailable", extra={"error": repr(e), "items": len(pending)})
        return
    except Exception as e:
        # any collaborator failure leaves reasoning empty
        logger.exception("reasoning_unavailable", extra={"error": repr(e), "items": len(pending)})
        return
    for rec in pending:
        rec.reasoning = scrub_reasoning(texts.get(rec.id, []), movie_id=rec.id)


async def get_tonights_pick(
    query: Query,
    ratings: RatingSource,
    candidates: CandidateSource,
    *,
    reasoning: ReasoningSource | None = None,
    config: EngineConfig | None = None,
    timeout: float | None = None,
    pool_limit: int | None = None,
) -> TonightPick:
    config = config or EngineConfig.from_settings()
    records, genre_index, pool = await load_inputs(query, ratings, candidates, timeout=timeout, pool_limit=pool_limit)
    pick = recommend(query, records, genre_index, pool, config)

    if pick.profile.is_cold_start:
        TONIGHT_COLD_STARTS.inc()
    if not pick.recommendations:
        TONIGHT_EMPTY_PAGES.inc()
    for rule, n in pick.filter_drops.items():
        TONIGHT_FILTER_DROPS.labels(rule=rule).inc(n)

    if reasoning is not None:
        await _attach_reasoning(pick, query, reasoning, settings.tonight_reasoning_timeout_s)
    logger.info(
        "tonight_pick",
        extra={
            "members": len(query.member_ids),
            "page": query.page,
            "returned": len(pick.recommendations),
            "survivors": pick.page.total,
            "total_ratings": pick.profile.total_ratings,
        },
    )
    return pick


async def explain_tonights_pick(
    query: Query,
    ratings: RatingSource,
    candidates: CandidateSource,
    *,
    config: EngineConfig | None = None,
    timeout: float | None = None,
) -> list[dict]:
    config = config or EngineConfig.from_settings()
    records, genre_index, pool = await load_inputs(query, ratings, candidates, timeout=timeout)
    return explain(query, records, genre_index, pool, config)
