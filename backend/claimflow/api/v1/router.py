from fastapi import APIRouter

from claimflow.api.v1 import approval_matrix, auth, claims, users

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(claims.router, prefix="/claims", tags=["claims"])
api_router.include_router(approval_matrix.router, prefix="/approval-matrix", tags=["approval-matrix"])
