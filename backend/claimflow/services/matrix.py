"""Approval matrix persistence: chain loading and upsert by (department, level)."""
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from claimflow.core.errors import NotFoundError
from claimflow.models.approval_matrix import ApprovalMatrixEntry
from claimflow.models.user import User
from claimflow.services import audit as audit_svc
from claimflow.services.routing import ApprovalChain

logger = logging.getLogger(__name__)


async def list_entries(db: AsyncSession, department: str | None = None) -> list[ApprovalMatrixEntry]:
    stmt = select(ApprovalMatrixEntry).order_by(
        ApprovalMatrixEntry.department, ApprovalMatrixEntry.level
    )
    if department is not None:
        stmt = stmt.where(ApprovalMatrixEntry.department == department)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def load_chain(db: AsyncSession, department: str | None) -> ApprovalChain:
    """Load one department's rows into an ApprovalChain for the router."""
    if not department:
        return ApprovalChain([])
    return ApprovalChain(await list_entries(db, department))


async def is_approver(db: AsyncSession, user_id: uuid.UUID) -> bool:
    result = await db.execute(
        select(ApprovalMatrixEntry.id).where(ApprovalMatrixEntry.approver_id == user_id).limit(1)
    )
    return result.first() is not None


async def upsert_entry(
    db: AsyncSession,
    department: str,
    approver_id: uuid.UUID,
    level: int = 1,
    actor_id: uuid.UUID | None = None,
) -> ApprovalMatrixEntry:
    """Assign ``approver_id`` to (department, level), replacing any existing rule.

    Raises:
        NotFoundError: approver does not exist.
    """
    approver = await db.get(User, approver_id)
    if approver is None:
        raise NotFoundError(f"Approver {approver_id} not found.")

    result = await db.execute(
        select(ApprovalMatrixEntry).where(
            ApprovalMatrixEntry.department == department,
            ApprovalMatrixEntry.level == level,
        )
    )
    entry = result.scalars().first()
    before = None
    if entry is not None:
        before = {"approver_id": entry.approver_id}
        entry.approver_id = approver_id
        entry.approver = approver
    else:
        entry = ApprovalMatrixEntry(
            department=department, approver_id=approver_id, level=level, approver=approver
        )
        db.add(entry)
    await db.flush()

    await audit_svc.log(
        db,
        action="approval_matrix.upserted",
        entity_type="approval_matrix",
        entity_id=entry.id,
        actor_id=actor_id,
        before=before,
        after={"department": department, "level": level, "approver_id": approver_id},
    )
    await db.commit()
    logger.info("Approval matrix: %s level %s -> %s", department, level, approver_id)
    return entry


async def delete_entry(db: AsyncSession, entry_id: uuid.UUID, actor_id: uuid.UUID | None = None) -> None:
    entry = await db.get(ApprovalMatrixEntry, entry_id)
    if entry is None:
        raise NotFoundError("Entry not found.")

    await db.delete(entry)
    await audit_svc.log(
        db,
        action="approval_matrix.deleted",
        entity_type="approval_matrix",
        entity_id=entry_id,
        actor_id=actor_id,
        before={"department": entry.department, "level": entry.level, "approver_id": entry.approver_id},
    )
    await db.commit()
