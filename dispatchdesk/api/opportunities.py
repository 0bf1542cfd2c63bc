from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from dispatchdesk.db.session import get_db
from dispatchdesk.schemas.opportunity import (
    OpportunityCreate,
    OpportunityUpdate,
    OpportunityOut,
    StageUpdate,
    PipelineSummary,
)
from dispatchdesk.core.security import get_current_user
from dispatchdesk.core.enums import AuditAction
from dispatchdesk.core.exceptions import NotFoundError
from dispatchdesk.core.audit_decorator import audit_log
from dispatchdesk.core.rate_limit import check_rate_limit
from dispatchdesk.core.auth_utils import not_found_response
from dispatchdesk.core.response_builders import build_opportunity_response, build_opportunity_response_list
from dispatchdesk.services import opportunities as opportunity_service

router = APIRouter(prefix="/opportunities", tags=["pipeline"])


@router.get("/", response_model=List[OpportunityOut])
async def list_opportunities(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    opps = await opportunity_service.list_opportunities(db)
    return build_opportunity_response_list(opps)


@router.get("/summary", response_model=PipelineSummary)
async def pipeline_summary(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return await opportunity_service.pipeline_summary(db)


@router.post("/", response_model=OpportunityOut)
@audit_log(AuditAction.CREATE_OPPORTUNITY)
async def create_opportunity(
    payload: OpportunityCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))
    opp = await opportunity_service.create_opportunity(db, payload)
    return build_opportunity_response(opp)


@router.get("/{opportunity_id}", response_model=OpportunityOut)
async def get_opportunity(
    opportunity_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    try:
        opp = await opportunity_service.get_opportunity(db, opportunity_id)
    except NotFoundError as e:
        raise not_found_response(e)
    return build_opportunity_response(opp)


@router.post("/{opportunity_id}/stage", response_model=OpportunityOut)
@audit_log(AuditAction.UPDATE_OPPORTUNITY)
async def move_stage(
    opportunity_id: int,
    payload: StageUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    """Move a deal to another pipeline column. Closed deals may be reopened."""
    await check_rate_limit(int(current_user.id))
    try:
        opp = await opportunity_service.update_stage(db, opportunity_id, payload.stage)
    except NotFoundError as e:
        raise not_found_response(e)
    return build_opportunity_response(opp)


@router.patch("/{opportunity_id}", response_model=OpportunityOut)
@audit_log(AuditAction.UPDATE_OPPORTUNITY)
async def update_opportunity(
    opportunity_id: int,
    payload: OpportunityUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))
    try:
        opp = await opportunity_service.update_opportunity(db, opportunity_id, payload)
    except NotFoundError as e:
        raise not_found_response(e)
    return build_opportunity_response(opp)


@router.delete("/{opportunity_id}")
@audit_log(AuditAction.DELETE_OPPORTUNITY)
async def delete_opportunity(
    opportunity_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))
    try:
        await opportunity_service.delete_opportunity(db, opportunity_id)
    except NotFoundError as e:
        raise not_found_response(e)
    return {"deleted": True}
