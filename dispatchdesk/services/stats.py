from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from dispatchdesk.core.enums import LeadStatus, LEAD_QUEUE_PRIORITY
from dispatchdesk.models.call_log import CallLog
from dispatchdesk.models.lead import Lead
from dispatchdesk.schemas.stats import DashboardStats
from dispatchdesk.services.opportunities import pipeline_summary
from dispatchdesk.utils.numbers import round_half_up
from dispatchdesk.utils.timeutils import utcnow


async def _count_leads(db: AsyncSession, *statuses: LeadStatus) -> int:
    q = select(func.count(Lead.id))
    if statuses:
        q = q.where(Lead.status.in_(statuses))
    res = await db.execute(q)
    return res.scalar() or 0


async def dashboard_stats(db: AsyncSession) -> DashboardStats:
    today = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    res = await db.execute(
        select(func.count(CallLog.id), func.coalesce(func.sum(CallLog.duration_seconds), 0))
        .where(CallLog.timestamp >= today)
    )
    calls_today, talk_seconds = res.one()
    avg_talk_time = round_half_up(talk_seconds / calls_today) if calls_today else 0

    pipeline = await pipeline_summary(db)

    return DashboardStats(
        total_calls_today=calls_today,
        interested_leads=await _count_leads(db, LeadStatus.INTERESTED),
        retry_queue=await _count_leads(db, LeadStatus.RETRY),
        dnc_count=await _count_leads(db, LeadStatus.DNC),
        total_leads=await _count_leads(db),
        leads_in_queue=await _count_leads(db, *LEAD_QUEUE_PRIORITY),
        onboarded_count=pipeline.won_count,
        avg_talk_time=avg_talk_time,
        pipeline_value=pipeline.pipeline_value,
        win_rate=pipeline.win_rate,
        active_deals=pipeline.active_deals,
    )
