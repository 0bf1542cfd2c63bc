from typing import Optional, List
from datetime import datetime
from dispatchdesk.core.enums import AssetType, AssetStatus, LoadStatus, TripStatus, StopType
from dispatchdesk.schemas.base import CamelModel


class DriverCreate(CamelModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    license_number: Optional[str] = None
    status: str = "Active"


class DriverOut(DriverCreate):
    id: int
    created_at: datetime


class AssetCreate(CamelModel):
    unit_number: str
    type: AssetType
    make_model: Optional[str] = None
    vin: Optional[str] = None
    plate_number: Optional[str] = None
    status: AssetStatus = AssetStatus.ACTIVE
    current_location: Optional[str] = None


class AssetOut(AssetCreate):
    id: int
    created_at: datetime


class LoadCreate(CamelModel):
    customer_name: str
    pickup_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    rate: Optional[float] = None
    distance_miles: Optional[float] = None
    weight_lbs: Optional[float] = None
    commodity: Optional[str] = None
    status: LoadStatus = LoadStatus.PENDING
    notes: Optional[str] = None


class LoadStatusUpdate(CamelModel):
    status: LoadStatus


class LoadOut(LoadCreate):
    id: int
    created_at: datetime


class StopCreate(CamelModel):
    load_id: Optional[int] = None
    stop_sequence: int
    type: StopType
    location_name: str
    address: str
    scheduled_time: Optional[datetime] = None


class StopOut(StopCreate):
    id: int
    trip_id: int


class TripCreate(CamelModel):
    driver_id: Optional[int] = None
    truck_id: Optional[int] = None
    trailer_id: Optional[int] = None
    status: TripStatus = TripStatus.PLANNED
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    total_miles: Optional[float] = None
    stops: List[StopCreate] = []


class TripOut(CamelModel):
    id: int
    driver_id: Optional[int] = None
    truck_id: Optional[int] = None
    trailer_id: Optional[int] = None
    status: TripStatus
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    total_miles: Optional[float] = None
    driver: Optional[DriverOut] = None
    truck: Optional[AssetOut] = None
    trailer: Optional[AssetOut] = None
    stops: List[StopOut] = []
