import logging
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from .metrics import REQUEST_LATENCY_MS, TONIGHT_REQUEST_ERRORS
from .logging_setup import set_request_id
from .settings import settings
from prometheus_client import Counter as _Counter

TONIGHT_SLOW_REQUESTS = _Counter('tonight_slow_requests_total', "Tonight's pick requests exceeding SLO target")

logger = logging.getLogger(__name__)


class RequestIdAndTimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        req_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        set_request_id(req_id)
        start = time.perf_counter()
        status_code = None
        route_label = request.url.path.rsplit("/", 1)[-1] or request.url.path
        try:
            response = await call_next(request)
            status_code = int(getattr(response, "status_code", 200))
            response.headers["X-Request-ID"] = req_id
            return response
        except Exception:
            # Count unhandled exceptions as 5xx
            TONIGHT_REQUEST_ERRORS.labels(route=route_label).inc()
            raise
        finally:
            dur_ms = 1000.0 * (time.perf_counter() - start)
            if request.url.path.endswith("/tonight"):
                REQUEST_LATENCY_MS.observe(dur_ms)
                if dur_ms > float(settings.tonight_target_p95_ms):
                    logger.warning("tonight_slow", extra={"lat_ms": round(dur_ms, 2), "path": request.url.path})
                    TONIGHT_SLOW_REQUESTS.inc()
            if status_code and status_code >= 500:
                TONIGHT_REQUEST_ERRORS.labels(route=route_label).inc()
            set_request_id(None)
