"""Seed demo users and approval matrix rows into an empty database."""
import asyncio
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from claimflow.core.config import get_settings
from claimflow.core.logging import setup_logging
from claimflow.core.security import hash_password
from claimflow.db.session import build_engine, build_session_factory, create_tables
from claimflow.models.approval_matrix import ApprovalMatrixEntry
from claimflow.models.user import User

logger = logging.getLogger(__name__)

DEFAULT_PASSWORD = "password"

# (name, username, email, role, department)
DEFAULT_USERS = [
    ("Admin User", "admin", "admin@example.com", "admin", "IT"),
    ("Sarah Manager", "sarah", "sarah@example.com", "user", "Finance"),
    ("John Doe", "john", "user@example.com", "user", "IT"),
]

# (department, level, approver username)
DEFAULT_MATRIX = [
    ("IT", 1, "admin"),
    ("Finance", 1, "sarah"),
]


async def seed_if_empty(db: AsyncSession) -> bool:
    """Insert the demo data when the users table is empty. Returns True if seeded."""
    count = (await db.execute(select(func.count()).select_from(User))).scalar_one()
    if count:
        logger.info("Users already present (%d), skipping seed.", count)
        return False

    logger.info("No users found. Seeding database...")
    password_hash = hash_password(DEFAULT_PASSWORD)
    users: dict[str, User] = {}
    for name, username, email, role, department in DEFAULT_USERS:
        user = User(
            name=name,
            username=username,
            email=email,
            password_hash=password_hash,
            role=role,
            department=department,
            is_active=True,
        )
        db.add(user)
        users[username] = user
    await db.flush()

    for department, level, username in DEFAULT_MATRIX:
        db.add(ApprovalMatrixEntry(department=department, level=level, approver_id=users[username].id))
        logger.info("Seeded matrix rule: %s level %d -> %s", department, level, username)

    await db.commit()
    return True


async def run_seed() -> None:
    settings = get_settings()
    engine = build_engine(settings)
    try:
        await create_tables(engine)
        async with build_session_factory(engine)() as db:
            await seed_if_empty(db)
    finally:
        await engine.dispose()
    logger.info("Seeding complete.")


if __name__ == "__main__":
    setup_logging(get_settings())
    asyncio.run(run_seed())
