"""Tests for demo data seeding."""
import pytest
from sqlalchemy import func, select

from claimflow.core.seed import seed_if_empty
from claimflow.models.user import User
from claimflow.services import matrix as matrix_svc
from claimflow.services import users as users_svc


@pytest.mark.asyncio
async def test_seed_populates_empty_database(db):
    assert await seed_if_empty(db) is True

    usernames = set((await db.execute(select(User.username))).scalars().all())
    assert usernames == {"admin", "sarah", "john"}

    finance = await matrix_svc.list_entries(db, "Finance")
    assert [(e.level, e.approver.username) for e in finance] == [(1, "sarah")]
    it = await matrix_svc.list_entries(db, "IT")
    assert [(e.level, e.approver.username) for e in it] == [(1, "admin")]

    admin = await users_svc.authenticate(db, "admin", "password")
    assert admin.is_admin


@pytest.mark.asyncio
async def test_seed_is_idempotent(db):
    await seed_if_empty(db)

    assert await seed_if_empty(db) is False
    assert (await db.execute(select(func.count()).select_from(User))).scalar_one() == 3
