from typing import Optional
from datetime import datetime
from dispatchdesk.schemas.base import CamelModel


class RateConfirmationIn(CamelModel):
    load_id: Optional[int] = None
    carrier_name: str
    carrier_mc: Optional[str] = None
    carrier_dot: Optional[str] = None
    driver_contact: Optional[str] = None
    flat_rate: Optional[float] = None
    pickup_time: Optional[datetime] = None
    shipper_name: Optional[str] = None
    pickup_address: Optional[str] = None
    delivery_time: Optional[datetime] = None
    consignee_name: Optional[str] = None
    delivery_address: Optional[str] = None
    notes: Optional[str] = None
