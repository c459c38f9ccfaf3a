from prometheus_client import Counter, Histogram, Gauge, CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response
from fastapi import APIRouter


REQUEST_LATENCY_MS = Histogram(
    "tonight_request_latency_ms",
    "Latency of tonight's pick requests in milliseconds",
    buckets=(5, 10, 25, 50, 100, 200, 400, 800, 1600, 3200),
)
ADAPTER_ERRORS = Counter("adapter_errors_total", "Adapter error count", ["adapter"])

# Upstream reads that timed out or raised (rating store, candidate catalog)
TONIGHT_UPSTREAM_ERRORS = Counter(
    "tonight_upstream_errors_total",
    "Upstream read failures surfaced as UpstreamUnavailable",
    ["source"],
)

TONIGHT_COLD_STARTS = Counter(
    "tonight_cold_starts_total",
    "Requests whose members had no rating history at all",
)

TONIGHT_EMPTY_PAGES = Counter(
    "tonight_empty_pages_total",
    "Requests that returned no recommendations (filters too strict or page past the end)",
)

TONIGHT_FILTER_DROPS = Counter(
    "tonight_filter_drops_total",
    "Candidates eliminated, by rule",
    ["rule"],
)

# Build info gauge (set once at startup)
TONIGHT_BUILD_INFO = Gauge(
    "tonight_build_info",
    "Build info tagged with version, sha, env",
    labelnames=["version", "sha", "env"],
)

# Total API errors (incremented on 5xx)
TONIGHT_REQUEST_ERRORS = Counter(
    "tonight_request_errors_total",
    "Total API errors",
    ["route"],
)


router = APIRouter()


@router.get("/metrics")
async def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
