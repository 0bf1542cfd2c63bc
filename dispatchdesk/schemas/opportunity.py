from typing import Optional
from datetime import date
from pydantic import model_validator
from dispatchdesk.core.enums import SalesStage
from dispatchdesk.schemas.base import CamelModel, reject_explicit_nulls


class OpportunityCreate(CamelModel):
    title: str
    company_name: Optional[str] = None
    value: float = 0.0
    next_action: Optional[str] = None
    expected_close_date: Optional[date] = None


class OpportunityUpdate(CamelModel):
    title: Optional[str] = None
    company_name: Optional[str] = None
    value: Optional[float] = None
    stage: Optional[SalesStage] = None
    owner: Optional[str] = None
    next_action: Optional[str] = None
    expected_close_date: Optional[date] = None
    probability: Optional[int] = None

    @model_validator(mode="after")
    def required_columns_not_null(self) -> "OpportunityUpdate":
        reject_explicit_nulls(self, ("title", "value", "stage"))
        return self


class StageUpdate(CamelModel):
    stage: SalesStage


class OpportunityOut(CamelModel):
    id: int
    title: str
    company_name: Optional[str] = None
    value: float
    stage: SalesStage
    owner: Optional[str] = None
    next_action: Optional[str] = None
    expected_close_date: Optional[date] = None
    probability: Optional[int] = None


class PipelineSummary(CamelModel):
    pipeline_value: float
    win_rate: int
    active_deals: int
    won_count: int
    lost_count: int
