import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import InvalidQuery, UpstreamUnavailable
from .logging_setup import configure_logging
from .metrics import TONIGHT_BUILD_INFO, router as metrics_router
from .middleware import RequestIdAndTimingMiddleware
from .routers import debug, health, tonight
from .settings import settings

configure_logging()
logger = logging.getLogger("tonight.api")

app = FastAPI(title="Tonight's Pick API", version=settings.app_version or "0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.allow_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdAndTimingMiddleware)

app.include_router(tonight.router)
app.include_router(debug.router)
app.include_router(health.router)
app.include_router(metrics_router)

TONIGHT_BUILD_INFO.labels(version=app.version, sha=settings.git_sha or "unknown", env=settings.environment).set(1)


@app.exception_handler(InvalidQuery)
async def invalid_query_handler(request: Request, exc: InvalidQuery):
    return JSONResponse(status_code=400, content={"error": exc.code, "detail": str(exc), "retryable": False})


@app.exception_handler(UpstreamUnavailable)
async def upstream_unavailable_handler(request: Request, exc: UpstreamUnavailable):
    logger.warning("upstream_unavailable", extra={"source": exc.source, "reason": exc.reason, "path": request.url.path})
    return JSONResponse(status_code=503, content={"error": exc.code, "detail": str(exc), "retryable": True})
