from typing import Optional, List
from datetime import datetime
from pydantic import Field, model_validator
from dispatchdesk.core.enums import LeadStatus
from dispatchdesk.schemas.base import CamelModel, reject_explicit_nulls


class NoteOut(CamelModel):
    id: int
    content: str
    timestamp: datetime


class NoteCreate(CamelModel):
    content: str = Field(min_length=1)


class LeadFields(CamelModel):
    company_name: str
    mc_number: Optional[str] = None
    dot_number: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    state: Optional[str] = None
    address: Optional[str] = None
    truck_count: Optional[int] = None


class LeadCreate(LeadFields):
    source: Optional[str] = None


class LeadUpdate(CamelModel):
    company_name: Optional[str] = None
    mc_number: Optional[str] = None
    dot_number: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    state: Optional[str] = None
    address: Optional[str] = None
    truck_count: Optional[int] = None
    next_follow_up: Optional[datetime] = None

    @model_validator(mode="after")
    def required_columns_not_null(self) -> "LeadUpdate":
        reject_explicit_nulls(self, ("company_name",))
        return self


class LeadStatusUpdate(CamelModel):
    status: LeadStatus
    note: Optional[str] = None


class LeadOut(CamelModel):
    id: int
    serial_number: Optional[int] = None
    company_name: str
    mc_number: Optional[str] = None
    dot_number: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    state: Optional[str] = None
    address: Optional[str] = None
    truck_count: Optional[int] = None
    status: LeadStatus
    last_call_time: Optional[datetime] = None
    next_follow_up: Optional[datetime] = None
    source: Optional[str] = None
    notes: List[NoteOut] = []
    created_at: datetime
    updated_at: Optional[datetime] = None


class BulkDeleteRequest(CamelModel):
    ids: List[int]


class DeleteResult(CamelModel):
    deleted: int


class ImportResult(CamelModel):
    imported: int
    source: str
