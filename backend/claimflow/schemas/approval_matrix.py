"""Pydantic schemas for approval matrix rows."""
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ApprovalMatrixEntryIn(BaseModel):
    department: str = Field(min_length=1, max_length=100)
    approver_id: uuid.UUID
    level: int = Field(default=1, ge=1)


class ApprovalMatrixEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    department: str
    approver_id: uuid.UUID
    approver_name: str | None = None
    level: int
    created_at: datetime
    updated_at: datetime


class ApprovalStepOut(BaseModel):
    """One level of the approval flow shown alongside a claim."""

    level: int
    approver_id: uuid.UUID
    approver_name: str | None = None
    is_current: bool = False
