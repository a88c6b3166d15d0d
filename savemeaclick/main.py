import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from savemeaclick import __version__
from savemeaclick.api.summarize import router as summarize_router
from savemeaclick.core.config import settings, validate_settings
from savemeaclick.core.exceptions import SaveMeAClickError
from savemeaclick.core.logging import setup_logging
from savemeaclick.core.metrics import PrometheusMiddleware, metrics_response
from savemeaclick.core.middleware import RequestLoggingMiddleware
from savemeaclick.core.sentry import init_sentry
from savemeaclick.schemas.summarize import HealthResponse

# Configure logging before anything else
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    validate_settings()
    init_sentry()
    logger.info(
        "Starting SaveMeAClick %s (env=%s, model=%s, stream=%s)",
        __version__,
        settings.app_env,
        settings.openai_model,
        settings.openai_stream,
    )

    yield

    logger.info("SaveMeAClick shut down")


app = FastAPI(
    title="SaveMeAClick",
    description="Article summaries and clickbait assessment",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.app_debug else None,
    redoc_url="/redoc" if settings.app_debug else None,
)


@app.exception_handler(SaveMeAClickError)
async def _app_error_handler(request: Request, exc: SaveMeAClickError):
    logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Log unhandled exceptions with their traceback
@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled %s on %s %s:\n%s", type(exc).__name__, request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"detail": f"{type(exc).__name__}: {exc}"})


# Request logging + metrics middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(PrometheusMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(summarize_router)


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse()


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_response()


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "savemeaclick.main:app",
        host=settings.app_host,
        port=settings.app_port,
        log_config=None,  # keep our logging setup
    )
