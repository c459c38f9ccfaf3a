from __future__ import annotations
from datetime import datetime, timezone
from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

import logging
from ..db import get_session
from ..settings import settings

router = APIRouter(tags=["health"])


class Health(BaseModel):
    status: str
    time_utc: str
    checks: dict
    version: str | None = None
    sha: str | None = None


def _db_check() -> dict:
    try:
        with next(get_session()) as s:
            s.execute(text("SELECT 1"))
        return {"ok": True}
    except Exception as e:
        return {"ok": False, "error": str(e)}


@router.get("/healthz", response_model=Health)
async def healthz():
    logger = logging.getLogger(__name__)
    checks: dict[str, dict] = {"db": _db_check()}

    # Candidate catalog: local table or TMDB
    if settings.use_real_tmdb:
        checks["candidates"] = {"ok": bool(settings.tmdb_api_key), "source": "tmdb"}
    else:
        checks["candidates"] = {"ok": True, "source": "local"}

    checks["app"] = {"ok": True}

    overall = "ok" if all(x.get("ok") for x in checks.values()) else "degraded"
    resp = Health(status=overall, time_utc=datetime.now(timezone.utc).isoformat(), checks=checks, version=settings.app_version, sha=settings.git_sha)
    if resp.status != "ok":
        logger.warning("healthz degraded", extra={"checks": checks})
    return resp


@router.get("/readyz", response_model=Health)
async def readyz():
    checks = {"db": _db_check()}
    overall = "ok" if checks["db"]["ok"] else "degraded"
    return Health(status=overall, time_utc=datetime.now(timezone.utc).isoformat(), checks=checks, version=settings.app_version)
