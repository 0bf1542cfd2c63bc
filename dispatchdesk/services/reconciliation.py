"""Merge provider call detail records into the call log.

Calls placed from desk phones and softphones never pass through this service,
so they are pulled back in after the fact from the provider's call reports.
Each row is committed on its own: a failure part-way through keeps the rows
already imported, and the (lead, timestamp) check keeps a re-run from
inserting them twice.
"""
import logging
import time
from datetime import datetime, timedelta
from typing import Iterable, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from dispatchdesk.core.metrics import call_logs_reconciled, call_report_rows_skipped, call_sync_duration
from dispatchdesk.models.call_log import CallLog
from dispatchdesk.services.calls import advance_last_call_time, call_log_exists
from dispatchdesk.services.phone import resolve_lead
from dispatchdesk.services.telephony_reports import CallRecord, TelephonyReportClient
from dispatchdesk.utils.timeutils import utcnow, as_utc

logger = logging.getLogger(__name__)

DEFAULT_OUTCOME = "Completed"


def sync_window(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Start of the previous calendar day (UTC) through now."""
    end = as_utc(now) or utcnow()
    start = (end - timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, end


async def import_call_rows(db: AsyncSession, records: Iterable[CallRecord]) -> int:
    inserted = 0
    for record in records:
        if record.started_at is None:
            call_report_rows_skipped.labels(reason="no_timestamp").inc()
            continue

        phone_number = record.destination
        lead = await resolve_lead(db, record.destination)
        if lead is None:
            phone_number = record.source
            lead = await resolve_lead(db, record.source)
        if lead is None:
            call_report_rows_skipped.labels(reason="no_lead").inc()
            continue

        timestamp = as_utc(record.started_at)
        if await call_log_exists(db, lead.id, timestamp):
            call_report_rows_skipped.labels(reason="duplicate").inc()
            continue

        db.add(CallLog(
            lead=lead,
            phone_number=phone_number,
            outcome=record.status or DEFAULT_OUTCOME,
            duration_seconds=record.duration_seconds,
            notes=f"Imported from call report ({record.direction})" if record.direction else "Imported from call report",
            recording_url=record.recording_url,
            timestamp=timestamp,
        ))
        advance_last_call_time(lead, timestamp)
        await db.commit()
        inserted += 1

    call_logs_reconciled.inc(inserted)
    return inserted


async def sync_call_logs(
    db: AsyncSession,
    client: TelephonyReportClient,
    now: Optional[datetime] = None,
) -> int:
    start, end = sync_window(now)
    started = time.time()
    async with client:
        records = await client.fetch_call_records(start, end)
    inserted = await import_call_rows(db, records)
    call_sync_duration.observe(time.time() - started)
    logger.info(f"Call sync imported {inserted} of {len(records)} report rows")
    return inserted
