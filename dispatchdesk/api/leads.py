from fastapi import APIRouter, Depends, Form, Header, HTTPException, Query, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List

from dispatchdesk.db.session import get_db
from dispatchdesk.schemas.lead import (
    LeadCreate,
    LeadUpdate,
    LeadOut,
    LeadStatusUpdate,
    NoteCreate,
    NoteOut,
    BulkDeleteRequest,
    DeleteResult,
    ImportResult,
)
from dispatchdesk.schemas.call_log import CallLogOut
from dispatchdesk.core.security import get_current_user, require_admin
from dispatchdesk.core.config import settings
from dispatchdesk.core.enums import AuditAction
from dispatchdesk.core.exceptions import NotFoundError, SpreadsheetError
from dispatchdesk.utils.idempotency import get_idempotent, set_idempotent
from dispatchdesk.core.audit_decorator import audit_log
from dispatchdesk.core.rate_limit import check_rate_limit
from dispatchdesk.core.auth_utils import not_found_response
from dispatchdesk.core.response_builders import (
    build_lead_response,
    build_lead_response_list,
    build_note_response,
    build_call_log_response_list,
)
from dispatchdesk.services import leads as lead_service
from dispatchdesk.services.calls import list_call_history
from dispatchdesk.services.lead_import import parse_lead_sheet

router = APIRouter(prefix="/leads", tags=["leads"])


@router.post("/", response_model=LeadOut)
@audit_log(AuditAction.CREATE_LEAD)
async def create_lead(
    payload: LeadCreate,
    idempotency_key: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))

    if idempotency_key:
        prev = await get_idempotent("create_lead", idempotency_key)
        if prev:
            return prev

    lead = await lead_service.create_lead(db, payload)

    out = build_lead_response(lead)
    if idempotency_key:
        await set_idempotent("create_lead", idempotency_key, out.model_dump(mode="json"))
    return out


@router.get("/", response_model=List[LeadOut])
async def list_leads(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    leads = await lead_service.list_leads(db)
    return build_lead_response_list(leads)


@router.get("/next", response_model=Optional[LeadOut])
async def next_lead(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    """Next lead in the dial queue, or null when the queue is empty."""
    lead = await lead_service.get_next_lead(db)
    return build_lead_response(lead) if lead else None


@router.get("/sources")
async def list_sources(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return await lead_service.list_sources(db)


@router.post("/import", response_model=ImportResult)
@audit_log(AuditAction.IMPORT_LEADS)
async def import_leads(
    file: UploadFile = File(...),
    source: str = Form(...),
    idempotency_key: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))

    if idempotency_key:
        prev = await get_idempotent("import_leads", idempotency_key)
        if prev:
            return prev

    source = source.strip()
    if not source:
        raise HTTPException(status_code=400, detail="Source label is required")

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size: {settings.MAX_UPLOAD_SIZE / (1024*1024)}MB"
        )

    try:
        rows = parse_lead_sheet(content, file.filename)
    except SpreadsheetError as e:
        raise HTTPException(status_code=400, detail=str(e))

    imported = await lead_service.bulk_import(db, rows, source)

    out = ImportResult(imported=imported, source=source)
    if idempotency_key:
        await set_idempotent("import_leads", idempotency_key, out.model_dump(mode="json"))
    return out


@router.post("/bulk-delete", response_model=DeleteResult)
@audit_log(AuditAction.DELETE_LEAD)
async def bulk_delete_leads(
    payload: BulkDeleteRequest,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    await check_rate_limit(int(current_user.id))
    deleted = await lead_service.delete_leads(db, payload.ids)
    return DeleteResult(deleted=deleted)


@router.delete("/by-source", response_model=DeleteResult)
@audit_log(AuditAction.DELETE_LEAD)
async def delete_leads_by_source(
    source: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    await check_rate_limit(int(current_user.id))
    deleted = await lead_service.delete_by_source(db, source)
    return DeleteResult(deleted=deleted)


@router.get("/{lead_id}", response_model=LeadOut)
async def get_lead(
    lead_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    try:
        lead = await lead_service.get_lead(db, lead_id)
    except NotFoundError as e:
        raise not_found_response(e)
    return build_lead_response(lead)


@router.patch("/{lead_id}", response_model=LeadOut)
@audit_log(AuditAction.UPDATE_LEAD)
async def update_lead(
    lead_id: int,
    payload: LeadUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    """Update contact details of a lead"""
    await check_rate_limit(int(current_user.id))
    try:
        lead = await lead_service.update_details(db, lead_id, payload)
    except NotFoundError as e:
        raise not_found_response(e)
    return build_lead_response(lead)


@router.post("/{lead_id}/status", response_model=LeadOut)
@audit_log(AuditAction.UPDATE_LEAD_STATUS)
async def update_lead_status(
    lead_id: int,
    payload: LeadStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))
    try:
        lead = await lead_service.update_status(db, lead_id, payload.status, payload.note)
    except NotFoundError as e:
        raise not_found_response(e)
    return build_lead_response(lead)


@router.post("/{lead_id}/notes", response_model=NoteOut)
@audit_log(AuditAction.UPDATE_LEAD)
async def add_note(
    lead_id: int,
    payload: NoteCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))
    try:
        note = await lead_service.add_note(db, lead_id, payload.content)
    except NotFoundError as e:
        raise not_found_response(e)
    return build_note_response(note)


@router.get("/{lead_id}/calls", response_model=List[CallLogOut])
async def lead_call_history(
    lead_id: int,
    limit: int = Query(200, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    try:
        await lead_service.get_lead(db, lead_id)
    except NotFoundError as e:
        raise not_found_response(e)
    logs = await list_call_history(db, lead_id=lead_id, limit=limit, offset=offset)
    return build_call_log_response_list(logs)


@router.delete("/{lead_id}", response_model=DeleteResult)
@audit_log(AuditAction.DELETE_LEAD)
async def delete_lead(
    lead_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))
    try:
        await lead_service.delete_lead(db, lead_id)
    except NotFoundError as e:
        raise not_found_response(e)
    return DeleteResult(deleted=1)
