import logging
from datetime import datetime
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from dispatchdesk.models.call_log import CallLog
from dispatchdesk.models.lead import Lead
from dispatchdesk.schemas.call_log import CallLogCreate
from dispatchdesk.services.leads import get_lead
from dispatchdesk.services.phone import resolve_lead
from dispatchdesk.utils.timeutils import utcnow, as_utc

logger = logging.getLogger(__name__)


def advance_last_call_time(lead: Lead, timestamp: datetime) -> bool:
    """Move last_call_time forward only. Returns True when it changed."""
    current = as_utc(lead.last_call_time)
    timestamp = as_utc(timestamp)
    if current is not None and timestamp <= current:
        return False
    lead.last_call_time = timestamp
    return True


async def log_call(db: AsyncSession, payload: CallLogCreate, timestamp: Optional[datetime] = None) -> CallLog:
    """Record a call placed outside the app (desk phone, softphone)."""
    timestamp = as_utc(timestamp) or utcnow()

    if payload.lead_id is not None:
        lead = await get_lead(db, payload.lead_id)
    else:
        lead = await resolve_lead(db, payload.phone_number)

    log = CallLog(
        lead=lead,
        phone_number=payload.phone_number,
        outcome=payload.outcome,
        duration_seconds=max(payload.duration_seconds, 0),
        notes=payload.note,
        recording_url=payload.recording_url,
        timestamp=timestamp,
    )
    if lead is not None:
        advance_last_call_time(lead, timestamp)
    else:
        logger.info(f"Call to {payload.phone_number} logged without a matching lead")

    db.add(log)
    await db.commit()
    return log


async def list_call_history(
    db: AsyncSession,
    lead_id: Optional[int] = None,
    limit: int = 200,
    offset: int = 0,
) -> List[CallLog]:
    q = select(CallLog)
    if lead_id is not None:
        q = q.where(CallLog.lead_id == lead_id)
    q = q.order_by(CallLog.timestamp.desc(), CallLog.id.desc()).limit(limit).offset(offset)
    res = await db.execute(q)
    return res.scalars().all()


async def call_log_exists(db: AsyncSession, lead_id: int, timestamp: datetime) -> bool:
    res = await db.execute(
        select(CallLog.id)
        .where(CallLog.lead_id == lead_id)
        .where(CallLog.timestamp == as_utc(timestamp))
        .limit(1)
    )
    return res.scalars().first() is not None
