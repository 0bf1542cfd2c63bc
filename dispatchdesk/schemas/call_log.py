from typing import Optional
from datetime import datetime
from dispatchdesk.schemas.base import CamelModel


class CallLogCreate(CamelModel):
    phone_number: str
    outcome: str
    duration_seconds: int = 0
    note: Optional[str] = None
    recording_url: Optional[str] = None
    lead_id: Optional[int] = None


class CallLogOut(CamelModel):
    id: int
    lead_id: Optional[int] = None
    company_name: Optional[str] = None
    phone_number: Optional[str] = None
    outcome: str
    note: Optional[str] = None
    timestamp: datetime
    duration_seconds: int
    recording_url: Optional[str] = None


class CallSyncResult(CamelModel):
    inserted: int
