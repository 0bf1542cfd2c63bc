import re
from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship, validates
from dispatchdesk.models.base import BaseModel, enum_column_type
from dispatchdesk.core.enums import LeadStatus
from dispatchdesk.utils.timeutils import utcnow


class Lead(BaseModel):
    __tablename__ = "leads"

    serial_number = Column(Integer, index=True)
    company_name = Column(String(255), nullable=False)
    mc_number = Column(String(32))
    dot_number = Column(String(32))
    phone_number = Column(String(40))
    phone_digits = Column(String(40), index=True)
    email = Column(String(255))
    state = Column(String(64))
    address = Column(String(255))
    truck_count = Column(Integer)
    status = Column(enum_column_type(LeadStatus), default=LeadStatus.NEW, nullable=False, index=True)
    last_call_time = Column(DateTime(timezone=True))
    next_follow_up = Column(DateTime(timezone=True))
    source = Column(String(120), index=True)

    notes = relationship(
        "Note",
        back_populates="lead",
        order_by="Note.timestamp",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @validates("phone_number")
    def _track_phone_digits(self, key, value):
        digits = re.sub(r"\D", "", value or "")
        self.phone_digits = digits or None
        return value


class Note(BaseModel):
    __tablename__ = "notes"

    lead_id = Column(ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    lead = relationship("Lead", back_populates="notes")
    content = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False)
