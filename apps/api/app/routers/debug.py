from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..engine import EngineConfig
from ..schemas import TonightRequest
from ..service import explain_tonights_pick
from ..settings import settings
from ..sources import CandidateSource, RatingSource
from .utils import get_candidate_source, get_engine_config, get_rating_source


router = APIRouter()


@router.post("/debug/tonight")
async def debug_tonight(
    req: TonightRequest,
    ratings: RatingSource = Depends(get_rating_source),
    candidates: CandidateSource = Depends(get_candidate_source),
    config: EngineConfig = Depends(get_engine_config),
):
    """Every candidate with the rules it failed, its mood verdict and its scores."""
    if not settings.enable_debug_endpoints:
        raise HTTPException(status_code=404, detail="disabled")
    query = req.to_query(req.member_ids)
    rows = await explain_tonights_pick(query, ratings, candidates, config=config)
    return {"page": query.page, "items": rows}
