"""Approval matrix endpoints."""
import uuid

from fastapi import APIRouter, status

from claimflow.core.deps import AdminUser, CurrentUser, DbSession
from claimflow.schemas.approval_matrix import ApprovalMatrixEntryIn, ApprovalMatrixEntryOut
from claimflow.services import matrix as matrix_svc

router = APIRouter()


def _to_out(entry) -> ApprovalMatrixEntryOut:
    out = ApprovalMatrixEntryOut.model_validate(entry)
    out.approver_name = entry.approver.name if entry.approver is not None else None
    return out


@router.get(
    "",
    response_model=list[ApprovalMatrixEntryOut],
    summary="List approval matrix rows, by department then level",
)
async def list_entries(db: DbSession, current_user: CurrentUser, department: str | None = None):
    return [_to_out(e) for e in await matrix_svc.list_entries(db, department)]


@router.post(
    "",
    response_model=ApprovalMatrixEntryOut,
    summary="Set the approver for a department level (ADMIN)",
)
async def upsert_entry(body: ApprovalMatrixEntryIn, db: DbSession, current_user: AdminUser):
    entry = await matrix_svc.upsert_entry(
        db, body.department, body.approver_id, body.level, actor_id=current_user.id
    )
    return _to_out(entry)


@router.delete(
    "/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an approval matrix row (ADMIN)",
)
async def delete_entry(entry_id: uuid.UUID, db: DbSession, current_user: AdminUser):
    await matrix_svc.delete_entry(db, entry_id, actor_id=current_user.id)
