"""Approval router — decides who acts next on a claim.

Pure functions over a matrix lookup: no database access, no notifications.
The caller loads the department's chain, asks the router for an outcome,
persists the outcome and dispatches the notifications it lists.

State machine per claim::

    [created] --(level-1 approver)--> Pending(level=1)
    [created] --(no approver)-------> Approved          (auto-approval)
    Pending(L) --(approve, L+1 exists)--> Pending(L+1)
    Pending(L) --(approve, no L+1)-----> Approved
    Pending(L) --(reject)--------------> Rejected
"""
import enum
import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from claimflow.core.errors import InvalidStateError
from claimflow.models.claim import TERMINAL_STATUSES, ClaimStatus

logger = logging.getLogger(__name__)


class Notification(str, enum.Enum):
    submitted = "submitted"
    approval_requested = "approval_requested"
    final_status = "final_status"
    auto_approved = "auto_approved"


@dataclass(frozen=True)
class ApproverRef:
    approver_id: uuid.UUID
    level: int


class MatrixLookup(Protocol):
    def find_by_level(self, department: str | None, level: int) -> ApproverRef | None:
        ...

    def find_level_for_approver(self, department: str | None, approver_id: uuid.UUID | None) -> int | None:
        ...


class ApprovalChain:
    """In-memory view of approval matrix rows, keyed by (department, level)."""

    def __init__(self, rows: Iterable):
        self._by_level: dict[tuple[str, int], ApproverRef] = {}
        for row in sorted(rows, key=lambda r: r.level):
            # first row wins, matching a first-match lookup
            self._by_level.setdefault(
                (row.department, row.level), ApproverRef(row.approver_id, row.level)
            )

    def find_by_level(self, department: str | None, level: int) -> ApproverRef | None:
        if not department:
            return None
        return self._by_level.get((department, level))

    def find_level_for_approver(self, department: str | None, approver_id: uuid.UUID | None) -> int | None:
        if not department or approver_id is None:
            return None
        levels = [
            ref.level for (dept, _), ref in self._by_level.items()
            if dept == department and ref.approver_id == approver_id
        ]
        return min(levels) if levels else None


@dataclass
class RoutingOutcome:
    status: ClaimStatus
    approver_id: uuid.UUID | None
    level: int | None
    notifications: list[Notification] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


def assign_initial_approver(department: str | None, matrix: MatrixLookup) -> RoutingOutcome:
    """Resolve the level-1 approver for a new claim.

    No department, or no level-1 rule for it, yields an auto-approved outcome
    with no approver. That is a normal result, never an error.
    """
    ref = matrix.find_by_level(department, 1)
    if ref is None:
        logger.info("No approver found for department %r. Auto-approving claim.", department)
        return RoutingOutcome(
            status=ClaimStatus.approved,
            approver_id=None,
            level=None,
            notifications=[Notification.auto_approved],
        )
    return RoutingOutcome(
        status=ClaimStatus.pending,
        approver_id=ref.approver_id,
        level=ref.level,
        notifications=[Notification.submitted, Notification.approval_requested],
    )


def advance(claim, decision: ClaimStatus | str, matrix: MatrixLookup) -> RoutingOutcome:
    """Compute the transition for an approve/reject decision on a Pending claim.

    ``claim`` needs ``status``, ``department``, ``approver_id`` and
    ``approval_level``. The current level comes from ``approval_level``;
    claims without one fall back to looking the approver up in the matrix.
    If neither gives a level, the claim is finalized as Approved.

    Raises:
        InvalidStateError: the claim is not Pending, or the decision is not
            Approved/Rejected.
    """
    decision = ClaimStatus(decision)
    if ClaimStatus(claim.status) is not ClaimStatus.pending:
        raise InvalidStateError(
            f"Claim {claim.id} is already finalized (status={claim.status})."
        )

    if decision is ClaimStatus.rejected:
        return RoutingOutcome(
            status=ClaimStatus.rejected,
            approver_id=claim.approver_id,
            level=claim.approval_level,
            notifications=[Notification.final_status],
        )
    if decision is not ClaimStatus.approved:
        raise InvalidStateError(f"Cannot move claim {claim.id} back to {decision.value}.")

    current_level = claim.approval_level
    if current_level is None:
        current_level = matrix.find_level_for_approver(claim.department, claim.approver_id)

    if current_level is None:
        logger.warning(
            "Claim %s: approver %s not found in matrix for department %r; finalizing as Approved.",
            claim.id, claim.approver_id, claim.department,
        )
        next_ref = None
    else:
        next_ref = matrix.find_by_level(claim.department, current_level + 1)

    if next_ref is not None:
        logger.info(
            "Claim %s moved from level %s to level %s (approver %s).",
            claim.id, current_level, next_ref.level, next_ref.approver_id,
        )
        return RoutingOutcome(
            status=ClaimStatus.pending,
            approver_id=next_ref.approver_id,
            level=next_ref.level,
            notifications=[Notification.approval_requested],
        )

    return RoutingOutcome(
        status=ClaimStatus.approved,
        approver_id=claim.approver_id,
        level=current_level,
        notifications=[Notification.final_status],
    )
