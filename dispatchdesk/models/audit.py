from sqlalchemy import Column, String, ForeignKey
from sqlalchemy.orm import relationship
from dispatchdesk.models.base import BaseModel, enum_column_type
from dispatchdesk.core.enums import AuditAction


class Audit(BaseModel):
    __tablename__ = "audits"

    user_id = Column(ForeignKey("users.id"), nullable=False, index=True)
    user = relationship("User", backref="audit_logs")

    action = Column(enum_column_type(AuditAction), nullable=False, index=True)
    # lead/opportunity/load id the action touched, when the route has one
    target_id = Column(String(64), nullable=True)
    payload_hash = Column(String(64), nullable=False)
