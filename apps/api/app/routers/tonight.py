from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Path

from ..content import CERTIFICATION_ORDER, ContentLevel
from ..domain import ERA_LABELS
from ..engine import EngineConfig
from ..moods import MOOD_TABLE
from ..reasoning import ReasoningSource
from ..schemas import (
    GroupProfileOut,
    MoodOut,
    RecommendationOut,
    SharedGenreOut,
    SoloTonightRequest,
    SoloTonightResponse,
    TonightOptions,
    TonightRequest,
    TonightResponse,
    UserProfileOut,
    PageMeta,
)
from ..service import get_tonights_pick
from ..sources import CandidateSource, RatingSource
from .utils import get_candidate_source, get_engine_config, get_rating_source, get_reasoning_source

router = APIRouter(tags=["tonight"])


@router.post("/tonight", response_model=TonightResponse)
async def tonight_for_group(
    req: TonightRequest,
    ratings: RatingSource = Depends(get_rating_source),
    candidates: CandidateSource = Depends(get_candidate_source),
    reasoning: Optional[ReasoningSource] = Depends(get_reasoning_source),
    config: EngineConfig = Depends(get_engine_config),
):
    # validation happens before any source is touched
    query = req.to_query(req.member_ids)
    pick = await get_tonights_pick(query, ratings, candidates, reasoning=reasoning, config=config)
    return TonightResponse(
        recommendations=[RecommendationOut.from_scored(r) for r in pick.recommendations],
        group_profile=GroupProfileOut.from_profile(pick.profile),
        **PageMeta.meta(pick.page),
    )


@router.post("/members/{member_id}/tonight", response_model=SoloTonightResponse)
async def tonight_for_member(
    req: SoloTonightRequest,
    member_id: str = Path(min_length=1),
    ratings: RatingSource = Depends(get_rating_source),
    candidates: CandidateSource = Depends(get_candidate_source),
    reasoning: Optional[ReasoningSource] = Depends(get_reasoning_source),
    config: EngineConfig = Depends(get_engine_config),
):
    query = req.to_query([member_id])
    pick = await get_tonights_pick(query, ratings, candidates, reasoning=reasoning, config=config)
    return SoloTonightResponse(
        recommendations=[RecommendationOut.from_scored(r) for r in pick.recommendations],
        user_profile=UserProfileOut(
            shared_genres=[SharedGenreOut.from_shared(g) for g in pick.profile.shared_genres],
            total_ratings=pick.profile.total_ratings,
        ),
        **PageMeta.meta(pick.page),
    )


@router.get("/tonight/options", response_model=TonightOptions)
def tonight_options(config: EngineConfig = Depends(get_engine_config)):
    return TonightOptions(
        moods=[
            MoodOut(
                name=rule.name,
                genre_ids=sorted(rule.genre_ids),
                avoid_genre_ids=sorted(rule.avoid_genre_ids),
                min_vote_average=rule.min_vote_average,
            )
            for rule in MOOD_TABLE.values()
        ],
        eras=list(ERA_LABELS),
        content_ratings=[c for c, _ in sorted(CERTIFICATION_ORDER.items(), key=lambda kv: kv[1])],
        content_levels=[lvl.value for lvl in ContentLevel],
        page_size=config.page_size,
    )
