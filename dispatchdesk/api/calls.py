import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List

from dispatchdesk.db.session import get_db, get_session_factory
from dispatchdesk.schemas.call_log import CallLogCreate, CallLogOut, CallSyncResult
from dispatchdesk.core.security import get_current_user
from dispatchdesk.core.enums import AuditAction
from dispatchdesk.core.exceptions import NotFoundError, TelephonyError, ReportTimeoutError
from dispatchdesk.core.audit_decorator import audit_log
from dispatchdesk.core.rate_limit import check_rate_limit
from dispatchdesk.core.auth_utils import not_found_response
from dispatchdesk.core.response_builders import build_call_log_response, build_call_log_response_list
from dispatchdesk.services.calls import log_call, list_call_history
from dispatchdesk.services.phone import build_dial_uri
from dispatchdesk.services.reconciliation import sync_call_logs
from dispatchdesk.services.softphone import FinishedCall, call_log_handler
from dispatchdesk.services.telephony_reports import TelephonyReportClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calls", tags=["calls"])


def get_report_client() -> TelephonyReportClient:
    return TelephonyReportClient()


@router.post("/", response_model=CallLogOut)
@audit_log(AuditAction.LOG_CALL)
async def create_call_log(
    payload: CallLogCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    """Log a call placed outside the dialer"""
    await check_rate_limit(int(current_user.id))
    try:
        log = await log_call(db, payload)
    except NotFoundError as e:
        raise not_found_response(e)
    return build_call_log_response(log)


@router.post("/softphone", response_model=CallLogOut)
@audit_log(AuditAction.LOG_CALL)
async def softphone_call_ended(
    payload: FinishedCall,
    db: AsyncSession = Depends(get_db),
    session_factory=Depends(get_session_factory),
    current_user=Depends(get_current_user)
):
    """on_call_ended target for the browser softphone"""
    await check_rate_limit(int(current_user.id))
    log = await call_log_handler(session_factory)(payload)
    return build_call_log_response(log)


@router.get("/", response_model=List[CallLogOut])
async def call_history(
    lead_id: Optional[int] = Query(None, alias="leadId"),
    limit: int = Query(200, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    logs = await list_call_history(db, lead_id=lead_id, limit=limit, offset=offset)
    return build_call_log_response_list(logs)


@router.post("/sync", response_model=CallSyncResult)
@audit_log(AuditAction.SYNC_CALLS)
async def sync_calls(
    db: AsyncSession = Depends(get_db),
    client: TelephonyReportClient = Depends(get_report_client),
    current_user=Depends(get_current_user)
):
    """Pull yesterday's and today's call reports from the provider and merge them in."""
    await check_rate_limit(int(current_user.id))
    try:
        inserted = await sync_call_logs(db, client)
    except ReportTimeoutError as e:
        raise HTTPException(status_code=504, detail=str(e))
    except TelephonyError as e:
        logger.error(f"Call sync failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return CallSyncResult(inserted=inserted)


@router.get("/dial-uri")
async def dial_uri(
    phone: str = Query(..., min_length=1),
    current_user=Depends(get_current_user)
):
    uri = build_dial_uri(phone)
    if uri is None:
        raise HTTPException(status_code=400, detail="Phone number has no digits")
    return {"uri": uri}
