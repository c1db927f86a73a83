"""Authentication and self-service account endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.security import OAuth2PasswordRequestForm

from claimflow.core.context import AppContext
from claimflow.core.deps import CurrentUser, DbSession, NotifierDep, get_context
from claimflow.core.limiter import limiter
from claimflow.core.security import create_access_token
from claimflow.schemas.auth import ForgotPasswordRequest, LoginResponse, MessageResponse, RegisterRequest
from claimflow.schemas.user import UserOut
from claimflow.services import matrix as matrix_svc
from claimflow.services import users as users_svc

router = APIRouter()

AUTH_RATE_LIMIT = "10/minute"


@router.post("/login", response_model=LoginResponse)
@limiter.limit(AUTH_RATE_LIMIT)
async def login(
    request: Request,
    form: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: DbSession,
    ctx: Annotated[AppContext, Depends(get_context)],
):
    user = await users_svc.authenticate(db, form.username, form.password)
    token = create_access_token(ctx.settings, subject=str(user.id), role=user.role)
    return LoginResponse(
        access_token=token,
        user=UserOut.model_validate(user),
        is_approver=await matrix_svc.is_approver(db, user.id),
    )


@router.post("/register", response_model=MessageResponse)
@limiter.limit(AUTH_RATE_LIMIT)
async def register(
    request: Request,
    body: RegisterRequest,
    db: DbSession,
    notifier: NotifierDep,
):
    await users_svc.register(db, notifier, body)
    return MessageResponse(message="Registration successful. Check email for credentials.")


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit(AUTH_RATE_LIMIT)
async def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    db: DbSession,
    notifier: NotifierDep,
):
    await users_svc.reset_password(db, notifier, body.username)
    return MessageResponse(
        message="If this account exists, a new password has been sent to your registered email."
    )


@router.get("/me", response_model=UserOut)
async def me(current_user: CurrentUser):
    return current_user
