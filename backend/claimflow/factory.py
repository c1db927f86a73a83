"""Application factory.

Building an app has no process-wide side effects: everything it needs comes
in through the ``AppContext``. Logging, Sentry and the shared rate limiter
are configured once by the ASGI entry point in ``claimflow.main``.
"""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from claimflow.api.v1.router import api_router
from claimflow.core.context import AppContext
from claimflow.core.errors import register_exception_handlers
from claimflow.core.limiter import limiter
from claimflow.core.seed import seed_if_empty
from claimflow.db.session import create_tables
from claimflow.middleware.request_id import RequestIdMiddleware

logger = logging.getLogger(__name__)


def create_app(ctx: AppContext) -> FastAPI:
    """Build the ASGI app around an explicit AppContext."""
    settings = ctx.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.DB_AUTO_CREATE:
            await create_tables(ctx.engine)
        if settings.SEED_ON_STARTUP:
            async with ctx.session_factory() as db:
                await seed_if_empty(db)
        yield
        await ctx.dispose()

    app = FastAPI(
        title="Expense Claim Approval API",
        version="0.1.0",
        docs_url="/api/docs" if settings.APP_ENV != "production" else None,
        redoc_url="/api/redoc" if settings.APP_ENV != "production" else None,
        lifespan=lifespan,
    )
    app.state.ctx = ctx

    # slowapi's exception handler reads the limiter from app.state
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_exception_handlers(app)

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "ok", "env": settings.APP_ENV}

    return app
