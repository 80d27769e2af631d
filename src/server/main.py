"""ASGI app exposing the HubSpot workflow webhook.

Startup configures logging, refuses to boot without a HubSpot token and
enables Sentry when a DSN is set. Shutdown closes the shared HubSpot client.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.conf.config import settings, validate_required_settings
from src.core.logging import setup_logging
from src.integrations.crm.hubspot import close_hubspot_client
from src.server.exceptions import APIError
from src.server.middleware import setup_middleware
from src.server.routers import health_router, hubspot_router


logger = logging.getLogger(__name__)


def _init_sentry() -> bool:
    """Enable Sentry error tracking when SENTRY_DSN is set."""
    if not settings.SENTRY_DSN:
        return False

    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration

    try:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.SENTRY_ENVIRONMENT,
            traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
            integrations=[FastApiIntegration()],
            send_default_pii=False,
        )
    except Exception as e:
        logger.error("[SENTRY] init failed, continuing without it: %s", e)
        return False

    logger.info("[SENTRY] enabled (env=%s)", settings.SENTRY_ENVIRONMENT)
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(
        level=settings.LOG_LEVEL,
        json_format=settings.LOG_JSON,
        service_name="hubspot-workflows",
    )

    try:
        validate_required_settings()
    except RuntimeError as e:
        logger.critical("Refusing to start: %s", e)
        raise

    _init_sentry()
    logger.info("HubSpot workflow webhook ready on /hubspot/webhook")

    try:
        yield
    finally:
        await close_hubspot_client()
        logger.info("HubSpot client closed")


app = FastAPI(
    title="HubSpot Workflows Webhooks",
    description="Reacts to HubSpot webhook events by keeping related CRM records consistent",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail or exc.message, "error": exc.message},
    )


setup_middleware(app)

app.include_router(health_router)
app.include_router(hubspot_router)
