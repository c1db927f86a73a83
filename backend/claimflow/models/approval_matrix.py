"""Per-department approval chain."""
import uuid

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from claimflow.db.base import Base, TimestampMixin, UUIDMixin
from claimflow.models.user import User


class ApprovalMatrixEntry(Base, UUIDMixin, TimestampMixin):
    """One level of a department's approval chain; level 1 acts first."""

    __tablename__ = "approval_matrix"
    __table_args__ = (
        UniqueConstraint("department", "level", name="uq_approval_matrix_department_level"),
    )

    department: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    approver_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    approver: Mapped[User] = relationship(User, lazy="joined")
