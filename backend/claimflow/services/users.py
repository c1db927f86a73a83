"""User directory: registration, admin CRUD, authentication and password resets."""
import logging
import uuid

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from claimflow.core.errors import AccountDisabledError, AuthError, ConflictError, NotFoundError
from claimflow.core.security import generate_password, hash_password, verify_password
from claimflow.models.approval_matrix import ApprovalMatrixEntry
from claimflow.models.claim import Claim
from claimflow.models.user import User
from claimflow.schemas.auth import RegisterRequest
from claimflow.schemas.user import UserCreate, UserUpdate
from claimflow.services import audit as audit_svc
from claimflow.services.notifier import Notifier

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    return list(result.scalars().all())


async def _ensure_unique(
    db: AsyncSession,
    username: str | None,
    email: str | None,
    exclude_id: uuid.UUID | None = None,
) -> None:
    clauses = []
    if username:
        clauses.append(User.username == username)
    if email:
        clauses.append(User.email == email)
    if not clauses:
        return
    stmt = select(User).where(or_(*clauses))
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    existing = (await db.execute(stmt)).scalars().first()
    if existing is None:
        return
    if email and existing.email == email:
        raise ConflictError("Email already registered")
    raise ConflictError("Username already taken")


# ─── Authentication ───

async def authenticate(db: AsyncSession, username: str, password: str) -> User:
    """Return the active user for these credentials.

    Raises:
        AuthError: unknown username or wrong password.
        AccountDisabledError: credentials are valid but the account is inactive.
    """
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalars().first()
    if user is None or not verify_password(password, user.password_hash):
        raise AuthError("Invalid credentials")
    if not user.is_active:
        raise AccountDisabledError("Account is disabled. Contact admin.")
    return user


# ─── Self-service ───

async def register(db: AsyncSession, notifier: Notifier, body: RegisterRequest) -> User:
    """Create an inactive account with a generated password and email it.

    The username is the local part of the email address. The first active
    admin is asked to activate the account.
    """
    username = body.email.split("@")[0]
    await _ensure_unique(db, username, body.email)

    password = generate_password()
    user = User(
        name=body.name,
        username=username,
        email=body.email,
        password_hash=hash_password(password),
        department=body.department,
        role="user",
        is_active=False,
    )
    db.add(user)
    await db.flush()
    await audit_svc.log(
        db,
        action="user.registered",
        entity_type="user",
        entity_id=user.id,
        after={"username": username, "email": body.email, "department": body.department},
    )
    await db.commit()
    logger.info("User registered (pending activation): %s", username)

    notifier.notify_account_created(user, password)
    admin = (
        await db.execute(
            select(User)
            .where(User.role == "admin", User.is_active.is_(True))
            .order_by(User.created_at)
            .limit(1)
        )
    ).scalars().first()
    if admin is not None:
        notifier.notify_registration_pending(admin, user)
    return user


async def reset_password(db: AsyncSession, notifier: Notifier, username: str) -> None:
    """Issue a new password for ``username``; unknown usernames are a silent no-op."""
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalars().first()
    if user is None:
        logger.info("Password reset requested for non-existent user: %s", username)
        return

    password = generate_password()
    user.password_hash = hash_password(password)
    await audit_svc.log(db, action="user.password_reset", entity_type="user", entity_id=user.id)
    await db.commit()
    notifier.notify_password_reset(user, password)


# ─── Admin CRUD ───

async def create_user(db: AsyncSession, body: UserCreate, actor_id: uuid.UUID | None = None) -> User:
    await _ensure_unique(db, body.username, body.email)
    user = User(
        **body.model_dump(exclude={"password"}),
        password_hash=hash_password(body.password),
    )
    db.add(user)
    await db.flush()
    await audit_svc.log(
        db,
        action="user.created",
        entity_type="user",
        entity_id=user.id,
        actor_id=actor_id,
        after=body.model_dump(exclude={"password"}),
    )
    await db.commit()
    return user


async def update_user(
    db: AsyncSession, user_id: uuid.UUID, body: UserUpdate, actor_id: uuid.UUID | None = None
) -> User:
    user = await get_user(db, user_id)
    changes = body.model_dump(exclude_unset=True)
    await _ensure_unique(db, changes.get("username"), changes.get("email"), exclude_id=user.id)

    password = changes.pop("password", None)
    if password:
        user.password_hash = hash_password(password)
    for field, value in changes.items():
        if value is None and field != "department":
            continue
        setattr(user, field, value)

    await audit_svc.log(
        db,
        action="user.updated",
        entity_type="user",
        entity_id=user.id,
        actor_id=actor_id,
        after={k: v for k, v in changes.items()},
        notes="password changed" if password else None,
    )
    await db.commit()
    await db.refresh(user)
    return user


async def delete_user(db: AsyncSession, user_id: uuid.UUID, actor_id: uuid.UUID | None = None) -> None:
    """Hard-delete a user along with their matrix rows and the claims they own.

    Pending claims waiting on this user keep their level and lose their
    approver; an admin can still decide them.
    """
    user = await get_user(db, user_id)

    await db.execute(delete(ApprovalMatrixEntry).where(ApprovalMatrixEntry.approver_id == user.id))
    await db.execute(
        update(Claim)
        .where(Claim.approver_id == user.id)
        .values(approver_id=None)
        .execution_options(synchronize_session=False)
    )
    owned = (await db.execute(select(Claim.id).where(Claim.owner_id == user.id))).scalars().all()
    if owned:
        await db.execute(
            update(Claim)
            .where(Claim.related_claim_id.in_(owned))
            .values(related_claim_id=None)
            .execution_options(synchronize_session=False)
        )
        await db.execute(delete(Claim).where(Claim.owner_id == user.id))

    before = {"username": user.username, "email": user.email, "role": user.role}
    await db.delete(user)
    await audit_svc.log(
        db,
        action="user.deleted",
        entity_type="user",
        entity_id=user_id,
        actor_id=actor_id,
        before=before,
    )
    await db.commit()
    logger.info("User deleted: %s", before["username"])
