from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from dispatchdesk.models.base import BaseModel
from dispatchdesk.utils.timeutils import utcnow


class CallLog(BaseModel):
    __tablename__ = "call_logs"

    lead_id = Column(ForeignKey("leads.id", ondelete="SET NULL"), nullable=True, index=True)
    lead = relationship("Lead", lazy="selectin")

    phone_number = Column(String(40))
    outcome = Column(String(64), nullable=False)
    duration_seconds = Column(Integer, default=0, nullable=False)
    notes = Column(Text)
    recording_url = Column(String(512))
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
