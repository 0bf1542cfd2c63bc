from sqlalchemy import Column, String, Float, Integer, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from dispatchdesk.models.base import BaseModel, enum_column_type
from dispatchdesk.core.enums import AssetType, AssetStatus, LoadStatus, TripStatus, StopType


class Driver(BaseModel):
    __tablename__ = "drivers"
    name = Column(String(120), nullable=False)
    email = Column(String(255))
    phone = Column(String(40))
    license_number = Column(String(64))
    status = Column(String(32), default="Active", nullable=False)


class Asset(BaseModel):
    __tablename__ = "assets"
    unit_number = Column(String(32), nullable=False, index=True)
    type = Column(enum_column_type(AssetType), nullable=False)
    make_model = Column(String(120))
    vin = Column(String(32))
    plate_number = Column(String(32))
    status = Column(enum_column_type(AssetStatus), default=AssetStatus.ACTIVE, nullable=False)
    current_location = Column(String(255))


class Load(BaseModel):
    __tablename__ = "loads"
    customer_name = Column(String(255), nullable=False)
    pickup_date = Column(DateTime(timezone=True))
    delivery_date = Column(DateTime(timezone=True))
    rate = Column(Float)
    distance_miles = Column(Float)
    weight_lbs = Column(Float)
    commodity = Column(String(120))
    status = Column(enum_column_type(LoadStatus), default=LoadStatus.PENDING, nullable=False, index=True)
    notes = Column(Text)


class Trip(BaseModel):
    __tablename__ = "trips"
    driver_id = Column(ForeignKey("drivers.id"), nullable=True)
    truck_id = Column(ForeignKey("assets.id"), nullable=True)
    trailer_id = Column(ForeignKey("assets.id"), nullable=True)
    status = Column(enum_column_type(TripStatus), default=TripStatus.PLANNED, nullable=False)
    start_time = Column(DateTime(timezone=True))
    end_time = Column(DateTime(timezone=True))
    total_miles = Column(Float)

    driver = relationship("Driver", lazy="selectin")
    truck = relationship("Asset", foreign_keys=[truck_id], lazy="selectin")
    trailer = relationship("Asset", foreign_keys=[trailer_id], lazy="selectin")
    stops = relationship(
        "Stop",
        back_populates="trip",
        order_by="Stop.stop_sequence",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class Stop(BaseModel):
    __tablename__ = "stops"
    trip_id = Column(ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    trip = relationship("Trip", back_populates="stops")
    load_id = Column(ForeignKey("loads.id"), nullable=True)
    stop_sequence = Column(Integer, nullable=False)
    type = Column(enum_column_type(StopType), nullable=False)
    location_name = Column(String(255), nullable=False)
    address = Column(String(255), nullable=False)
    scheduled_time = Column(DateTime(timezone=True))
