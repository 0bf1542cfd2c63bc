from sqlalchemy import Column, String, Float, Integer, Date, Text
from dispatchdesk.models.base import BaseModel, enum_column_type
from dispatchdesk.core.enums import SalesStage


class Opportunity(BaseModel):
    __tablename__ = "opportunities"

    title = Column(String(255), nullable=False)
    company_name = Column(String(255))
    value = Column(Float, default=0.0, nullable=False)
    stage = Column(enum_column_type(SalesStage), default=SalesStage.PROSPECTING, nullable=False, index=True)
    owner = Column(String(120), default="Agent")
    next_action = Column(Text)
    expected_close_date = Column(Date)
    probability = Column(Integer, default=20)
