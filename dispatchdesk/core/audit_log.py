"""Audit trail writes for mutating dispatcher actions"""
import logging
from typing import Any, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from dispatchdesk.models.audit import Audit
from dispatchdesk.core.enums import AuditAction
from dispatchdesk.core.metrics import audit_logs_created
from dispatchdesk.utils.hashing import payload_hash

logger = logging.getLogger(__name__)


async def log_audit(
    db: AsyncSession,
    user_id: int,
    action: AuditAction,
    payload: Optional[Any] = None,
    target_id: Optional[int] = None,
    commit: bool = False,
) -> None:
    if not isinstance(payload, dict) and not hasattr(payload, "model_dump"):
        payload = None

    try:
        audit_record = Audit(
            user_id=int(user_id),
            action=action,
            target_id=str(target_id) if target_id is not None else None,
            payload_hash=payload_hash(payload),
        )
        db.add(audit_record)
        if commit:
            await db.commit()
        else:
            await db.flush()
        audit_logs_created.labels(action=str(action)).inc()

    except Exception as e:
        logger.error(f"Audit logging failed for action {action}: {e}", exc_info=True)
        await db.rollback()
