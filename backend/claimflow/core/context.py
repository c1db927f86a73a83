"""Application context — everything a request handler needs, built once at startup.

The context is built by the ASGI entry point (or by tests), passed to
``create_app`` and kept on ``app.state.ctx``; handlers reach it through
``claimflow.core.deps``.
"""
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from claimflow.core.config import Settings
from claimflow.db.session import build_engine, build_session_factory
from claimflow.services.notifier import Notifier, QueueNotifier


@dataclass
class AppContext:
    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    notifier: Notifier

    @classmethod
    def from_settings(cls, settings: Settings, notifier: Notifier | None = None) -> "AppContext":
        engine = build_engine(settings)
        return cls(
            settings=settings,
            engine=engine,
            session_factory=build_session_factory(engine),
            notifier=notifier or QueueNotifier(settings),
        )

    async def dispose(self) -> None:
        await self.engine.dispose()
