"""Shared fixtures: a throwaway SQLite database, an app built around it, and
a notifier that records what would have been sent."""
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from claimflow.core.config import Settings
from claimflow.core.context import AppContext
from claimflow.core.limiter import limiter
from claimflow.core.security import create_access_token
from claimflow.db.session import build_engine, build_session_factory, create_tables
from claimflow.factory import create_app
from claimflow.schemas.user import UserCreate
from claimflow.services import matrix as matrix_svc
from claimflow.services import users as users_svc
from claimflow.services.notifier import Notifier


class RecordingNotifier(Notifier):
    """Collects (kind, recipient_id, claim_id) tuples instead of sending mail."""

    def __init__(self):
        self.sent: list[tuple] = []

    def notify_submitted(self, user, claim):
        self.sent.append(("submitted", user.id, claim.id))

    def notify_approval_requested(self, approver, claim, requester_name):
        self.sent.append(("approval_requested", approver.id, claim.id))

    def notify_final_status(self, user, claim, status):
        self.sent.append((f"final_status:{status}", user.id, claim.id))

    def notify_auto_approved(self, user, claim):
        self.sent.append(("auto_approved", user.id, claim.id))

    def notify_account_created(self, user, password):
        self.sent.append(("account_created", user.id, password))

    def notify_registration_pending(self, admin, new_user):
        self.sent.append(("registration_pending", admin.id, new_user.id))

    def notify_password_reset(self, user, password):
        self.sent.append(("password_reset", user.id, password))

    def kinds_for(self, recipient_id: uuid.UUID) -> list[str]:
        return [kind for kind, rid, _ in self.sent if rid == recipient_id]


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        APP_ENV="test",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        DB_AUTO_CREATE=True,
        SEED_ON_STARTUP=False,
        MAIL_ENABLED=False,
    )


@pytest.fixture(autouse=True)
def rate_limits():
    # the auth limiter is shared by every app in the process; start each test with fresh counters
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def ctx(settings, notifier):
    engine = build_engine(settings)
    await create_tables(engine)
    context = AppContext(
        settings=settings,
        engine=engine,
        session_factory=build_session_factory(engine),
        notifier=notifier,
    )
    yield context
    await engine.dispose()


@pytest_asyncio.fixture
async def db(ctx):
    async with ctx.session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(ctx):
    app = create_app(ctx)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


# ─── Helpers ──────────────────────────────────────────────────────────────────

async def make_user(db, username: str, role: str = "user", department: str | None = None, is_active: bool = True):
    return await users_svc.create_user(
        db,
        UserCreate(
            name=username.capitalize(),
            username=username,
            email=f"{username}@example.com",
            password="password",
            role=role,
            is_active=is_active,
            department=department,
        ),
    )


async def set_level(db, department: str, approver, level: int = 1):
    return await matrix_svc.upsert_entry(db, department, approver.id, level)


def auth_headers(settings: Settings, user) -> dict:
    token = create_access_token(settings, subject=str(user.id), role=user.role)
    return {"Authorization": f"Bearer {token}"}


def claim_payload(department: str | None = None, **overrides) -> dict:
    payload = {
        "title": "Client dinner",
        "type": "Expense",
        "amount": 200,
        "date": "2024-01-01",
        "category": "Food",
    }
    if department is not None:
        payload["department"] = department
    payload.update(overrides)
    return payload
