"""User directory endpoints (ADMIN)."""
import uuid

from fastapi import APIRouter, status

from claimflow.core.deps import AdminUser, DbSession
from claimflow.schemas.user import UserCreate, UserOut, UserUpdate
from claimflow.services import users as users_svc

router = APIRouter()


@router.get("", response_model=list[UserOut], summary="List users (ADMIN)")
async def list_users(db: DbSession, current_user: AdminUser):
    return await users_svc.list_users(db)


@router.post(
    "",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user (ADMIN)",
)
async def create_user(body: UserCreate, db: DbSession, current_user: AdminUser):
    return await users_svc.create_user(db, body, actor_id=current_user.id)


@router.put("/{user_id}", response_model=UserOut, summary="Update a user (ADMIN)")
async def update_user(user_id: uuid.UUID, body: UserUpdate, db: DbSession, current_user: AdminUser):
    return await users_svc.update_user(db, user_id, body, actor_id=current_user.id)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Hard-delete a user (ADMIN)",
)
async def delete_user(user_id: uuid.UUID, db: DbSession, current_user: AdminUser):
    await users_svc.delete_user(db, user_id, actor_id=current_user.id)
