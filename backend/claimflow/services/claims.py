"""Claim lifecycle service.

Wraps the approval router with persistence: loads the department chain,
applies the router's outcome in a single transaction, writes the audit trail
and dispatches notifications once the transaction has committed.
"""
import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from claimflow.core.errors import (
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    StaleStateError,
    ValidationError,
)
from claimflow.models.approval_matrix import ApprovalMatrixEntry
from claimflow.models.claim import Claim, ClaimStatus
from claimflow.models.user import User
from claimflow.schemas.claim import AdvanceClaimCommand, CreateClaimCommand
from claimflow.services import audit as audit_svc
from claimflow.services import matrix as matrix_svc
from claimflow.services import routing
from claimflow.services.notifier import Notifier
from claimflow.services.routing import Notification, RoutingOutcome

logger = logging.getLogger(__name__)


@dataclass
class DecisionResult:
    claim: Claim
    outcome: RoutingOutcome

    @property
    def message(self) -> str:
        if self.outcome.is_terminal:
            return f"Claim {self.outcome.status.value}"
        return "Moved to next approval level"


def _snapshot(claim: Claim) -> dict:
    return {
        "status": claim.status,
        "approver_id": claim.approver_id,
        "approval_level": claim.approval_level,
    }


async def _get_claim(db: AsyncSession, claim_id: uuid.UUID, for_update: bool = False) -> Claim:
    stmt = select(Claim).where(Claim.id == claim_id).execution_options(populate_existing=True)
    if for_update:
        stmt = stmt.with_for_update(of=Claim)
    claim = (await db.execute(stmt)).scalars().first()
    if claim is None:
        raise NotFoundError("Claim not found")
    return claim


# ─── Submit ───

async def submit_claim(
    db: AsyncSession,
    notifier: Notifier,
    requester: User,
    command: CreateClaimCommand,
) -> Claim:
    """Create a claim and route it to its level-1 approver (or auto-approve it)."""
    if not requester.is_active:
        raise PermissionDeniedError("Account is pending activation; claims cannot be submitted yet.")

    if command.related_claim_id is not None:
        related = await db.get(Claim, command.related_claim_id)
        if related is None:
            raise NotFoundError(f"Related claim {command.related_claim_id} not found.")

    department = command.department if command.department is not None else requester.department

    chain = await matrix_svc.load_chain(db, department)
    outcome = routing.assign_initial_approver(department, chain)

    claim = Claim(
        **command.model_dump(exclude={"department"}),
        department=department,
        status=outcome.status.value,
        approver_id=outcome.approver_id,
        approval_level=outcome.level,
        owner_id=requester.id,
        owner=requester,
    )
    db.add(claim)
    await db.flush()

    await audit_svc.log(
        db,
        action="claim.auto_approved" if outcome.is_terminal else "claim.submitted",
        entity_type="claim",
        entity_id=claim.id,
        actor_id=requester.id,
        after=_snapshot(claim),
    )
    await db.commit()

    logger.info(
        "Claim submitted: claim=%s department=%r status=%s approver=%s",
        claim.id, department, claim.status, claim.approver_id,
    )

    approver = await db.get(User, outcome.approver_id) if outcome.approver_id else None
    _dispatch(notifier, outcome, claim, requester, approver)
    return claim


# ─── Decide ───

async def decide_claim(
    db: AsyncSession,
    notifier: Notifier,
    claim_id: uuid.UUID,
    command: AdvanceClaimCommand,
    actor: User,
) -> DecisionResult:
    """Apply an Approved/Rejected decision from the current approver (or an admin).

    A decision applies to exactly one pending stage. The claim row is locked
    for the read-modify-write, the write is conditional on the claim still
    being at the stage that was read, and a decision naming a stage
    (``expected_level`` / ``expected_approver_id``) the claim has left is
    stale. Admins deciding on another approver's behalf must name the stage,
    so a repeated request cannot approve the following level as well.

    Raises:
        NotFoundError: no such claim.
        InvalidStateError: the claim is already Approved/Rejected.
        StaleStateError: the claim has moved past the stage the caller decided on.
        ValidationError: an admin stand-in decision without a stage.
        PermissionDeniedError: actor is neither the current approver nor an admin.
    """
    claim = await _get_claim(db, claim_id, for_update=True)

    if claim.is_terminal:
        raise InvalidStateError(f"Claim {claim_id} is already finalized (status={claim.status}).")

    if command.expected_approver_id is not None and command.expected_approver_id != claim.approver_id:
        raise StaleStateError(f"Claim {claim_id} has moved to another approver.")
    if command.expected_level is not None and command.expected_level != claim.approval_level:
        raise StaleStateError(f"Claim {claim_id} is no longer at level {command.expected_level}.")

    chain = await matrix_svc.load_chain(db, claim.department)

    if claim.approver_id != actor.id:
        if not actor.is_admin:
            actor_level = chain.find_level_for_approver(claim.department, actor.id)
            if actor_level is not None and claim.approval_level is not None and actor_level < claim.approval_level:
                raise StaleStateError(f"Claim {claim_id} has already moved past level {actor_level}.")
            raise PermissionDeniedError("You are not the assigned approver for this claim.")
        if command.expected_level is None and command.expected_approver_id is None:
            raise ValidationError(
                "Deciding on behalf of the assigned approver requires expected_level or expected_approver_id."
            )

    outcome = routing.advance(claim, command.status, chain)

    before = _snapshot(claim)
    expected_approver = (
        Claim.approver_id.is_(None) if claim.approver_id is None
        else Claim.approver_id == claim.approver_id
    )
    expected_level = (
        Claim.approval_level.is_(None) if claim.approval_level is None
        else Claim.approval_level == claim.approval_level
    )
    result = await db.execute(
        update(Claim)
        .where(
            Claim.id == claim_id,
            Claim.status == ClaimStatus.pending.value,
            expected_approver,
            expected_level,
        )
        .values(
            status=outcome.status.value,
            approver_id=outcome.approver_id,
            approval_level=outcome.level,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        # rollback expired `claim`; only the argument is safe to read now
        raise StaleStateError(f"Claim {claim_id} was decided concurrently; reload and retry.")

    await audit_svc.log(
        db,
        action="claim.advanced" if not outcome.is_terminal else f"claim.{outcome.status.value.lower()}",
        entity_type="claim",
        entity_id=claim.id,
        actor_id=actor.id,
        before=before,
        after={
            "status": outcome.status.value,
            "approver_id": outcome.approver_id,
            "approval_level": outcome.level,
        },
        notes=f"Decision {command.status} by {actor.username}",
    )
    await db.commit()
    await db.refresh(claim)

    logger.info(
        "Claim decision: claim=%s decision=%s actor=%s status=%s approver=%s",
        claim.id, command.status, actor.id, claim.status, claim.approver_id,
    )

    approver = None
    if Notification.approval_requested in outcome.notifications and outcome.approver_id:
        approver = await db.get(User, outcome.approver_id)
    _dispatch(notifier, outcome, claim, claim.owner, approver)
    return DecisionResult(claim=claim, outcome=outcome)


def _dispatch(notifier: Notifier, outcome: RoutingOutcome, claim: Claim, requester: User | None, approver: User | None) -> None:
    requester_name = requester.name if requester is not None else "Employee"
    for kind in outcome.notifications:
        if kind is Notification.submitted:
            notifier.notify_submitted(requester, claim)
        elif kind is Notification.approval_requested:
            notifier.notify_approval_requested(approver, claim, requester_name)
        elif kind is Notification.final_status:
            notifier.notify_final_status(requester, claim, outcome.status.value)
        elif kind is Notification.auto_approved:
            notifier.notify_auto_approved(requester, claim)


# ─── Queries ───

async def list_claims(
    db: AsyncSession,
    actor: User,
    assigned_to_me: bool = False,
    status: str | None = None,
) -> list[Claim]:
    """Admins see every claim; everyone else sees their own plus those assigned to them."""
    stmt = select(Claim).order_by(Claim.created_at.desc())
    if assigned_to_me:
        stmt = stmt.where(Claim.approver_id == actor.id)
    elif not actor.is_admin:
        stmt = stmt.where(or_(Claim.owner_id == actor.id, Claim.approver_id == actor.id))
    if status:
        stmt = stmt.where(Claim.status == status)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_claim_detail(
    db: AsyncSession, claim_id: uuid.UUID, actor: User
) -> tuple[Claim, list[ApprovalMatrixEntry]]:
    """Return the claim and its department's approval flow, levels ascending."""
    claim = await _get_claim(db, claim_id)
    flow = await matrix_svc.list_entries(db, claim.department) if claim.department else []

    allowed = (
        actor.is_admin
        or claim.owner_id == actor.id
        or claim.approver_id == actor.id
        or any(entry.approver_id == actor.id for entry in flow)
    )
    if not allowed:
        raise PermissionDeniedError("You do not have access to this claim.")
    return claim, flow


async def delete_claim(db: AsyncSession, claim_id: uuid.UUID, actor: User) -> None:
    claim = await _get_claim(db, claim_id)
    if claim.owner_id != actor.id and not actor.is_admin:
        raise PermissionDeniedError("Only the owner or an admin can delete a claim.")

    await db.execute(
        update(Claim)
        .where(Claim.related_claim_id == claim.id)
        .values(related_claim_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.delete(claim)
    await audit_svc.log(
        db,
        action="claim.deleted",
        entity_type="claim",
        entity_id=claim_id,
        actor_id=actor.id,
        before=_snapshot(claim),
    )
    await db.commit()
