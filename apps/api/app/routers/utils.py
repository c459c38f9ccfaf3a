from typing import Optional

from ..db import get_engine, init_db
from ..engine import EngineConfig
from ..reasoning import ReasoningSource, RuleBasedReasoning
from ..settings import settings
from ..sources import CandidateSource, RatingSource, SqlRatingSource, pick_candidate_source


# FastAPI dependencies; tests swap these through app.dependency_overrides


def get_rating_source() -> RatingSource:
    init_db()
    return SqlRatingSource(get_engine())


def get_candidate_source() -> CandidateSource:
    init_db()
    return pick_candidate_source(get_engine())


def get_reasoning_source() -> Optional[ReasoningSource]:
    if not settings.reasoning_enabled:
        return None
    return RuleBasedReasoning()


def get_engine_config() -> EngineConfig:
    return EngineConfig.from_settings(settings)
