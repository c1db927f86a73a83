"""Claim commands and response models.

Commands are validated here, at the HTTP boundary, before anything reaches
the claim service or the approval router.
"""
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from claimflow.schemas.approval_matrix import ApprovalStepOut


class CreateClaimCommand(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    type: str = Field(min_length=1, max_length=50)
    amount: Decimal = Field(ge=0, max_digits=18, decimal_places=2)
    date: date
    description: str | None = None
    category: str | None = None
    destination: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    receipt_url: str | None = Field(default=None, max_length=1024)
    related_claim_id: uuid.UUID | None = None
    # None falls back to the requester's department; "" means no department
    department: str | None = None

    @model_validator(mode="after")
    def check_travel_window(self) -> "CreateClaimCommand":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class AdvanceClaimCommand(BaseModel):
    status: Literal["Approved", "Rejected"]
    # The stage the client saw (ClaimOut.approval_level / approver_id). A
    # decision for a stage the claim has left is rejected as stale; admins
    # standing in for another approver must send one of them.
    expected_level: int | None = Field(default=None, ge=1)
    expected_approver_id: uuid.UUID | None = None


class ClaimOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    type: str
    amount: Decimal
    date: date
    status: str
    description: str | None
    category: str | None
    destination: str | None
    start_date: date | None
    end_date: date | None
    receipt_url: str | None
    related_claim_id: uuid.UUID | None
    department: str | None
    approver_id: uuid.UUID | None
    approval_level: int | None
    owner_id: uuid.UUID
    owner_name: str | None = None
    created_at: datetime
    updated_at: datetime


class ClaimDetailOut(ClaimOut):
    approval_flow: list[ApprovalStepOut] = []


class ClaimDecisionResponse(BaseModel):
    success: bool = True
    message: str
    claim: ClaimOut


class ClaimListResponse(BaseModel):
    items: list[ClaimOut]
    total: int
