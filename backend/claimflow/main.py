"""ASGI entry point: ``gunicorn -c gunicorn.conf.py claimflow.main:app``.

Importing this module configures the process (logging, Sentry, rate
limiting) from environment settings. Tests and embedders build apps with
``claimflow.factory.create_app`` instead.
"""
import logging

import sentry_sdk
from fastapi import FastAPI

from claimflow.core.config import get_settings
from claimflow.core.context import AppContext
from claimflow.core.limiter import limiter
from claimflow.core.logging import setup_logging
from claimflow.factory import create_app

logger = logging.getLogger(__name__)


def build_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings)

    if settings.SENTRY_DSN:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
            environment=settings.APP_ENV,
            send_default_pii=False,
        )
        logger.info("Sentry initialized")

    limiter.enabled = settings.RATE_LIMIT_ENABLED
    return create_app(AppContext.from_settings(settings))


app = build_app()
