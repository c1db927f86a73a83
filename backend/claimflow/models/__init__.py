from claimflow.models.user import User
from claimflow.models.approval_matrix import ApprovalMatrixEntry
from claimflow.models.claim import Claim, ClaimStatus, TERMINAL_STATUSES
from claimflow.models.audit import AuditLog

__all__ = [
    "User",
    "ApprovalMatrixEntry",
    "Claim", "ClaimStatus", "TERMINAL_STATUSES",
    "AuditLog",
]
