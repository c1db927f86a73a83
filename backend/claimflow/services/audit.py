"""Append-only audit trail for claim transitions and directory changes."""
import json
import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from claimflow.models.audit import AuditLog

logger = logging.getLogger(__name__)


def _as_uuid(value: uuid.UUID | str | None) -> uuid.UUID | None:
    if value is None or isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(value)


def _dump(state: Any | None) -> str | None:
    # UUIDs, Decimals and dates in snapshots are stored as their str()
    return None if state is None else json.dumps(state, default=str, sort_keys=True)


async def log(
    db: AsyncSession,
    action: str,
    entity_type: str,
    entity_id: uuid.UUID | str | None = None,
    actor_id: uuid.UUID | str | None = None,
    before: Any | None = None,
    after: Any | None = None,
    notes: str | None = None,
) -> AuditLog:
    """Add an audit row to the caller's transaction.

    ``action`` is a dotted verb such as ``claim.submitted`` or
    ``approval_matrix.upserted``; ``actor_id`` is None for system actions
    (seeding, self-registration). Nothing is committed here.
    """
    entry = AuditLog(
        actor_id=_as_uuid(actor_id),
        action=action,
        entity_type=entity_type,
        entity_id=_as_uuid(entity_id),
        before_state=_dump(before),
        after_state=_dump(after),
        notes=notes,
    )
    db.add(entry)
    await db.flush()
    logger.debug("Audit: %s %s/%s by %s", action, entity_type, entity_id, actor_id or "system")
    return entry
