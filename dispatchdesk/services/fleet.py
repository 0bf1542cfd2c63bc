import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from dispatchdesk.core.enums import AssetType, LoadStatus
from dispatchdesk.core.exceptions import (
    AssetNotFoundError,
    DriverNotFoundError,
    LoadNotFoundError,
    TripNotFoundError,
)
from dispatchdesk.models.fleet import Driver, Asset, Load, Trip, Stop
from dispatchdesk.schemas.fleet import DriverCreate, AssetCreate, LoadCreate, TripCreate

logger = logging.getLogger(__name__)


async def list_drivers(db: AsyncSession) -> List[Driver]:
    res = await db.execute(select(Driver).order_by(Driver.name))
    return res.scalars().all()


async def create_driver(db: AsyncSession, payload: DriverCreate) -> Driver:
    driver = Driver(**payload.model_dump())
    db.add(driver)
    await db.commit()
    return driver


async def list_assets(db: AsyncSession, asset_type: Optional[AssetType] = None) -> List[Asset]:
    q = select(Asset)
    if asset_type:
        q = q.where(Asset.type == asset_type)
    res = await db.execute(q.order_by(Asset.unit_number))
    return res.scalars().all()


async def create_asset(db: AsyncSession, payload: AssetCreate) -> Asset:
    asset = Asset(**payload.model_dump())
    db.add(asset)
    await db.commit()
    return asset


async def list_loads(db: AsyncSession, status: Optional[LoadStatus] = None) -> List[Load]:
    q = select(Load)
    if status:
        q = q.where(Load.status == status)
    res = await db.execute(q.order_by(Load.created_at.desc(), Load.id.desc()))
    return res.scalars().all()


async def get_load(db: AsyncSession, load_id: int) -> Load:
    res = await db.execute(select(Load).where(Load.id == load_id))
    load = res.scalars().first()
    if load is None:
        raise LoadNotFoundError(load_id)
    return load


async def create_load(db: AsyncSession, payload: LoadCreate) -> Load:
    load = Load(**payload.model_dump())
    db.add(load)
    await db.commit()
    return load


async def update_load_status(db: AsyncSession, load_id: int, status: LoadStatus) -> Load:
    load = await get_load(db, load_id)
    load.status = status
    await db.commit()
    logger.info(f"Load {load_id} is now {status}")
    return load


async def _get_or_raise(db: AsyncSession, model, object_id: Optional[int], error):
    if object_id is None:
        return None
    obj = await db.get(model, object_id)
    if obj is None:
        raise error(object_id)
    return obj


async def list_trips(db: AsyncSession) -> List[Trip]:
    res = await db.execute(
        select(Trip).order_by(Trip.start_time.desc().nulls_last(), Trip.id.desc())
    )
    return res.scalars().all()


async def get_trip(db: AsyncSession, trip_id: int) -> Trip:
    res = await db.execute(select(Trip).where(Trip.id == trip_id))
    trip = res.scalars().first()
    if trip is None:
        raise TripNotFoundError(trip_id)
    return trip


async def create_trip(db: AsyncSession, payload: TripCreate) -> Trip:
    driver = await _get_or_raise(db, Driver, payload.driver_id, DriverNotFoundError)
    truck = await _get_or_raise(db, Asset, payload.truck_id, AssetNotFoundError)
    trailer = await _get_or_raise(db, Asset, payload.trailer_id, AssetNotFoundError)
    for stop in payload.stops:
        await _get_or_raise(db, Load, stop.load_id, LoadNotFoundError)

    trip = Trip(
        driver=driver,
        truck=truck,
        trailer=trailer,
        status=payload.status,
        start_time=payload.start_time,
        end_time=payload.end_time,
        total_miles=payload.total_miles,
        stops=[Stop(**stop.model_dump()) for stop in sorted(payload.stops, key=lambda s: s.stop_sequence)],
    )
    db.add(trip)
    await db.commit()
    logger.info(f"Trip {trip.id} created with {len(trip.stops)} stops")
    return trip
