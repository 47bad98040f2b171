"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI

from config import AppSettings
from errors import register_error_handlers
from infrastructure.captcha.hcaptcha import HCaptchaVerifier
from infrastructure.captcha.protocol import FailureHandler
from infrastructure.http_client import HttpClient
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def create_app(
    settings: Optional[AppSettings] = None,
    *,
    http_client: Optional[HttpClient] = None,
    failure_handler: Optional[FailureHandler] = None,
) -> FastAPI:
    """Create and return a FastAPI application with a shared hCaptcha verifier.

    The verifier is built eagerly so it can also be handed to
    HCaptchaMiddleware; the HTTP client it uses is closed on shutdown.
    """
    if settings is None:
        settings = AppSettings()

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
        )

    setup_logging(settings.logging)

    if http_client is None:
        http_client = HttpClient(timeout=settings.hcaptcha.hcaptcha_timeout_seconds)
    verifier = HCaptchaVerifier.from_settings(
        settings.hcaptcha, http_client, failure_handler=failure_handler
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await http_client.aclose()
        log.info("http_client_closed")

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.http_client = http_client
    app.state.verifier = verifier

    register_error_handlers(app)

    return app
