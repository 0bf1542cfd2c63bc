import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from dispatchdesk.core.config import settings
from dispatchdesk.services.reconciliation import sync_call_logs
from dispatchdesk.services.telephony_reports import TelephonyReportClient

logger = logging.getLogger(__name__)

engine_worker = create_async_engine(settings.DATABASE_URL, future=True, echo=False)
AsyncSessionWorker = sessionmaker(engine_worker, class_=AsyncSession, expire_on_commit=False)


async def sync_call_reports_async(
    session_factory=None,
    client: Optional[TelephonyReportClient] = None,
) -> int:
    """Background call report sync. Errors propagate so the task can retry."""
    session_factory = session_factory or AsyncSessionWorker
    client = client or TelephonyReportClient()
    async with session_factory() as db:
        try:
            inserted = await sync_call_logs(db, client)
        except Exception as e:
            logger.error(f"Call report sync failed: {e}")
            raise
    logger.info(f"Background call sync inserted {inserted} call logs")
    return inserted
