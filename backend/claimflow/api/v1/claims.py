"""Claim endpoints.

  GET    /claims                 — own + assigned claims (ADMIN: all)
  POST   /claims                 — submit; routed to the level-1 approver
  GET    /claims/{id}            — detail with the department approval flow
  PUT    /claims/{id}/status     — approve/reject (current approver or ADMIN)
  DELETE /claims/{id}            — owner or ADMIN
"""
import uuid

from fastapi import APIRouter, Query, status

from claimflow.core.deps import CurrentUser, DbSession, NotifierDep
from claimflow.schemas.approval_matrix import ApprovalStepOut
from claimflow.schemas.claim import (
    AdvanceClaimCommand,
    ClaimDecisionResponse,
    ClaimDetailOut,
    ClaimListResponse,
    ClaimOut,
    CreateClaimCommand,
)
from claimflow.services import claims as claims_svc

router = APIRouter()


@router.get("", response_model=ClaimListResponse, summary="List claims visible to the current user")
async def list_claims(
    db: DbSession,
    current_user: CurrentUser,
    assigned_to_me: bool = Query(False, description="Only claims currently assigned to me"),
    claim_status: str | None = Query(None, alias="status", pattern="^(Pending|Approved|Rejected)$"),
):
    claims = await claims_svc.list_claims(db, current_user, assigned_to_me=assigned_to_me, status=claim_status)
    items = [ClaimOut.model_validate(c) for c in claims]
    return ClaimListResponse(items=items, total=len(items))


@router.post(
    "",
    response_model=ClaimOut,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a claim",
)
async def create_claim(
    body: CreateClaimCommand,
    db: DbSession,
    current_user: CurrentUser,
    notifier: NotifierDep,
):
    claim = await claims_svc.submit_claim(db, notifier, current_user, body)
    return ClaimOut.model_validate(claim)


@router.get("/{claim_id}", response_model=ClaimDetailOut, summary="Claim detail with approval flow")
async def get_claim(claim_id: uuid.UUID, db: DbSession, current_user: CurrentUser):
    claim, flow = await claims_svc.get_claim_detail(db, claim_id, current_user)
    out = ClaimDetailOut.model_validate(claim)
    out.approval_flow = [
        ApprovalStepOut(
            level=entry.level,
            approver_id=entry.approver_id,
            approver_name=entry.approver.name if entry.approver is not None else None,
            is_current=claim.status == "Pending" and entry.level == claim.approval_level,
        )
        for entry in flow
    ]
    return out


@router.put("/{claim_id}/status", response_model=ClaimDecisionResponse, summary="Approve or reject a claim")
async def update_claim_status(
    claim_id: uuid.UUID,
    body: AdvanceClaimCommand,
    db: DbSession,
    current_user: CurrentUser,
    notifier: NotifierDep,
):
    result = await claims_svc.decide_claim(db, notifier, claim_id, body, current_user)
    return ClaimDecisionResponse(message=result.message, claim=ClaimOut.model_validate(result.claim))


@router.delete("/{claim_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a claim")
async def delete_claim(claim_id: uuid.UUID, db: DbSession, current_user: CurrentUser):
    await claims_svc.delete_claim(db, claim_id, current_user)
