import logging
from typing import Optional, List, Iterable
from sqlalchemy import func, case, delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from dispatchdesk.core.config import settings
from dispatchdesk.core.enums import LeadStatus, LEAD_QUEUE_PRIORITY
from dispatchdesk.core.exceptions import LeadNotFoundError
from dispatchdesk.core.metrics import leads_imported, lead_status_changes
from dispatchdesk.models.lead import Lead, Note
from dispatchdesk.models.call_log import CallLog
from dispatchdesk.schemas.lead import LeadCreate, LeadFields, LeadUpdate
from dispatchdesk.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

DETAIL_FIELDS = {
    "company_name",
    "mc_number",
    "dot_number",
    "phone_number",
    "email",
    "state",
    "address",
    "truck_count",
    "next_follow_up",
}


async def _next_serial_number(db: AsyncSession) -> int:
    res = await db.execute(select(func.max(Lead.serial_number)))
    return (res.scalar() or 0) + 1


async def list_leads(db: AsyncSession, page_size: Optional[int] = None) -> List[Lead]:
    """All leads, newest first, read page by page so no row cap truncates the queue."""
    page_size = page_size or settings.LEAD_PAGE_SIZE
    leads: List[Lead] = []
    offset = 0
    while True:
        res = await db.execute(
            select(Lead)
            .order_by(Lead.created_at.desc(), Lead.id.desc())
            .offset(offset)
            .limit(page_size)
        )
        page = res.scalars().all()
        leads.extend(page)
        if len(page) < page_size:
            return leads
        offset += page_size


async def get_lead(db: AsyncSession, lead_id: int) -> Lead:
    res = await db.execute(select(Lead).where(Lead.id == lead_id))
    lead = res.scalars().first()
    if lead is None:
        raise LeadNotFoundError(lead_id)
    return lead


async def create_lead(db: AsyncSession, payload: LeadCreate) -> Lead:
    fields = payload.model_dump(exclude={"source"})
    lead = Lead(
        **fields,
        serial_number=await _next_serial_number(db),
        status=LeadStatus.NEW,
        source=payload.source or settings.MANUAL_LEAD_SOURCE,
        notes=[],
    )
    db.add(lead)
    await db.commit()
    logger.info(f"Lead {lead.id} created ({lead.company_name}, source={lead.source})")
    return lead


async def bulk_import(db: AsyncSession, rows: Iterable[LeadFields], source_label: str) -> int:
    serial = await _next_serial_number(db)
    leads = []
    for row in rows:
        leads.append(Lead(
            **row.model_dump(),
            serial_number=serial,
            status=LeadStatus.NEW,
            source=source_label,
            notes=[],
        ))
        serial += 1

    if not leads:
        return 0

    db.add_all(leads)
    await db.commit()
    leads_imported.labels(source=source_label).inc(len(leads))
    logger.info(f"Imported {len(leads)} leads with source '{source_label}'")
    return len(leads)


async def update_status(
    db: AsyncSession,
    lead_id: int,
    status: LeadStatus,
    note: Optional[str] = None,
) -> Lead:
    """Set status and last call time; a note also counts as a call.

    The status change, note and call log are written in one transaction.
    """
    lead = await get_lead(db, lead_id)
    timestamp = utcnow()

    lead.status = status
    lead.last_call_time = timestamp

    if note:
        lead.notes.append(Note(content=note, timestamp=timestamp))
        db.add(CallLog(
            lead=lead,
            phone_number=lead.phone_number,
            outcome=status.value,
            duration_seconds=0,
            notes=note,
            timestamp=timestamp,
        ))

    try:
        await db.commit()
    except Exception:
        await db.rollback()
        logger.error(f"Status update for lead {lead_id} rolled back", exc_info=True)
        raise

    lead_status_changes.labels(status=status.value).inc()
    return lead


async def update_details(db: AsyncSession, lead_id: int, payload: LeadUpdate) -> Lead:
    lead = await get_lead(db, lead_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if field in DETAIL_FIELDS:
            setattr(lead, field, value)
    await db.commit()
    return lead


async def add_note(db: AsyncSession, lead_id: int, content: str) -> Note:
    lead = await get_lead(db, lead_id)
    note = Note(content=content, timestamp=utcnow())
    lead.notes.append(note)
    await db.commit()
    return note


async def _purge(db: AsyncSession, lead_ids: List[int]) -> int:
    if not lead_ids:
        return 0
    # Call logs outlive their lead; notes do not.
    await db.execute(
        update(CallLog).where(CallLog.lead_id.in_(lead_ids)).values(lead_id=None)
    )
    await db.execute(delete(Note).where(Note.lead_id.in_(lead_ids)))
    res = await db.execute(delete(Lead).where(Lead.id.in_(lead_ids)))
    await db.commit()
    return res.rowcount or 0


async def delete_lead(db: AsyncSession, lead_id: int) -> None:
    lead = await get_lead(db, lead_id)
    await _purge(db, [lead.id])
    logger.info(f"Lead {lead_id} deleted")


async def delete_leads(db: AsyncSession, lead_ids: List[int]) -> int:
    deleted = await _purge(db, list(set(lead_ids)))
    logger.info(f"Deleted {deleted} leads by id")
    return deleted


async def delete_by_source(db: AsyncSession, source_label: str) -> int:
    res = await db.execute(select(Lead.id).where(Lead.source == source_label))
    deleted = await _purge(db, list(res.scalars().all()))
    logger.info(f"Deleted {deleted} leads with source '{source_label}'")
    return deleted


async def list_sources(db: AsyncSession) -> List[dict]:
    res = await db.execute(
        select(Lead.source, func.count(Lead.id))
        .group_by(Lead.source)
        .order_by(Lead.source)
    )
    return [{"source": source, "count": count} for source, count in res.all()]


async def get_next_lead(db: AsyncSession) -> Optional[Lead]:
    """Next lead to dial: RETRY before NEW, then the longest since last call."""
    rank = case(
        dict(LEAD_QUEUE_PRIORITY),
        value=Lead.status,
    )
    res = await db.execute(
        select(Lead)
        .where(Lead.status.in_(list(LEAD_QUEUE_PRIORITY)))
        .order_by(rank, Lead.last_call_time.asc().nulls_first(), Lead.id)
        .limit(1)
    )
    return res.scalars().first()
