from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List

from dispatchdesk.db.session import get_db
from dispatchdesk.schemas.fleet import (
    DriverCreate,
    DriverOut,
    AssetCreate,
    AssetOut,
    LoadCreate,
    LoadOut,
    LoadStatusUpdate,
    TripCreate,
    TripOut,
)
from dispatchdesk.core.security import get_current_user
from dispatchdesk.core.enums import AuditAction, AssetType, LoadStatus
from dispatchdesk.core.exceptions import NotFoundError
from dispatchdesk.core.audit_decorator import audit_log
from dispatchdesk.core.rate_limit import check_rate_limit
from dispatchdesk.core.auth_utils import not_found_response
from dispatchdesk.core.response_builders import (
    build_driver_response,
    build_asset_response,
    build_load_response,
    build_trip_response,
)
from dispatchdesk.services import fleet as fleet_service

router = APIRouter(prefix="/fleet", tags=["fleet"])


@router.get("/drivers", response_model=List[DriverOut])
async def list_drivers(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return [build_driver_response(d) for d in await fleet_service.list_drivers(db)]


@router.post("/drivers", response_model=DriverOut)
@audit_log(AuditAction.CREATE_DRIVER)
async def create_driver(
    payload: DriverCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))
    driver = await fleet_service.create_driver(db, payload)
    return build_driver_response(driver)


@router.get("/assets", response_model=List[AssetOut])
async def list_assets(
    asset_type: Optional[AssetType] = Query(None, alias="type"),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return [build_asset_response(a) for a in await fleet_service.list_assets(db, asset_type)]


@router.post("/assets", response_model=AssetOut)
@audit_log(AuditAction.CREATE_ASSET)
async def create_asset(
    payload: AssetCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))
    asset = await fleet_service.create_asset(db, payload)
    return build_asset_response(asset)


@router.get("/loads", response_model=List[LoadOut])
async def list_loads(
    status: Optional[LoadStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return [build_load_response(load) for load in await fleet_service.list_loads(db, status)]


@router.post("/loads", response_model=LoadOut)
@audit_log(AuditAction.CREATE_LOAD)
async def create_load(
    payload: LoadCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))
    load = await fleet_service.create_load(db, payload)
    return build_load_response(load)


@router.get("/loads/{load_id}", response_model=LoadOut)
async def get_load(
    load_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    try:
        load = await fleet_service.get_load(db, load_id)
    except NotFoundError as e:
        raise not_found_response(e)
    return build_load_response(load)


@router.post("/loads/{load_id}/status", response_model=LoadOut)
@audit_log(AuditAction.UPDATE_LOAD)
async def update_load_status(
    load_id: int,
    payload: LoadStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))
    try:
        load = await fleet_service.update_load_status(db, load_id, payload.status)
    except NotFoundError as e:
        raise not_found_response(e)
    return build_load_response(load)


@router.get("/trips", response_model=List[TripOut])
async def list_trips(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return [build_trip_response(t) for t in await fleet_service.list_trips(db)]


@router.get("/trips/{trip_id}", response_model=TripOut)
async def get_trip(
    trip_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    try:
        trip = await fleet_service.get_trip(db, trip_id)
    except NotFoundError as e:
        raise not_found_response(e)
    return build_trip_response(trip)


@router.post("/trips", response_model=TripOut)
@audit_log(AuditAction.CREATE_TRIP)
async def create_trip(
    payload: TripCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))
    try:
        trip = await fleet_service.create_trip(db, payload)
    except NotFoundError as e:
        raise not_found_response(e)
    return build_trip_response(trip)
