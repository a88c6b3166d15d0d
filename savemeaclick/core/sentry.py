"""Sentry error tracking for the summarize API.

Captures unhandled endpoint errors (FastAPI integration) and traces the
outbound httpx calls made by the pipeline: article fetches and OpenAI
completions, and in the bots process the platform API calls. Enabled only
when SENTRY_DSN is set.
"""

import logging

from savemeaclick import __version__
from savemeaclick.core.config import settings

logger = logging.getLogger(__name__)


def init_sentry() -> bool:
    """Initialize Sentry if SENTRY_DSN is configured. Returns True when enabled."""
    if not settings.sentry_dsn:
        logger.debug("Sentry DSN not configured, error tracking off")
        return False

    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.httpx import HttpxIntegration

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.app_env,
        release=f"savemeaclick@{__version__}",
        traces_sample_rate=0.1 if settings.app_env == "production" else 1.0,
        send_default_pii=False,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            HttpxIntegration(),
        ],
    )
    sentry_sdk.set_tag("openai_model", settings.openai_model)
    logger.info("Sentry initialized (env=%s, release=%s)", settings.app_env, __version__)
    return True
