"""Prometheus metrics for the application."""

import time

from prometheus_client import Counter, Histogram, Info, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from savemeaclick import __version__

# --- Metrics ---

APP_INFO = Info("app", "SaveMeAClick application info")
APP_INFO.info({"version": __version__, "name": "savemeaclick"})

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60, 120],
)

SUMMARIZE_RESULTS = Counter(
    "summarize_results_total",
    "Summarize pipeline outcomes",
    ["outcome"],  # success | extraction_error | generation_error | parse_error
)

LLM_DURATION = Histogram(
    "llm_completion_duration_seconds",
    "LLM completion round-trip time in seconds, retries included",
    ["model", "streamed"],
    buckets=[0.5, 1, 2.5, 5, 10, 20, 30, 60, 90, 180],
)

BOT_REPLIES = Counter(
    "bot_replies_total",
    "Replies posted by the social bots",
    ["bot", "status"],  # sent | apology | failed
)


# --- Middleware ---

# Label for requests no route matched (404 scans, typos)
UNMATCHED_PATH = "unmatched"


def _route_path(request: Request) -> str:
    """Route template of the matched endpoint, to keep the path label bounded."""
    route = request.scope.get("route")
    return getattr(route, "path", UNMATCHED_PATH)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Collect HTTP request metrics for Prometheus."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method

        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        # The router records the matched route in the shared scope
        path = _route_path(request)

        REQUEST_COUNT.labels(method=method, path=path, status=response.status_code).inc()
        REQUEST_DURATION.labels(method=method, path=path).observe(duration)

        return response


def metrics_response() -> Response:
    """Generate Prometheus /metrics response."""
    return Response(
        content=generate_latest(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
