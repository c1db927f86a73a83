import uuid
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from claimflow.core.context import AppContext
from claimflow.core.security import decode_token
from claimflow.db.session import open_session
from claimflow.models.user import User
from claimflow.services.notifier import Notifier

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


def get_context(request: Request) -> AppContext:
    return request.app.state.ctx


async def get_session(
    ctx: Annotated[AppContext, Depends(get_context)],
) -> AsyncGenerator[AsyncSession, None]:
    async for session in open_session(ctx.session_factory):
        yield session


def get_notifier(ctx: Annotated[AppContext, Depends(get_context)]) -> Notifier:
    return ctx.notifier


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_session)],
    ctx: Annotated[AppContext, Depends(get_context)],
) -> User:
    """Validate JWT and return the User ORM object."""
    credentials_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(ctx.settings, token)
        if payload.get("type") != "access":
            raise credentials_exc
        user_id = uuid.UUID(payload.get("sub") or "")
    except (JWTError, ValueError):
        raise credentials_exc

    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        raise credentials_exc
    return user


def require_role(*roles: str):
    """Dependency factory — raises 403 if user role not in allowed list."""
    async def check(user: Annotated[User, Depends(get_current_user)]) -> User:
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{user.role}' is not permitted for this action.",
            )
        return user
    return check


DbSession = Annotated[AsyncSession, Depends(get_session)]
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_role("admin"))]
NotifierDep = Annotated[Notifier, Depends(get_notifier)]
