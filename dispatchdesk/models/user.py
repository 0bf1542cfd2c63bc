from sqlalchemy import Column, String
from dispatchdesk.models.base import BaseModel, enum_column_type
from dispatchdesk.core.enums import UserRole


class User(BaseModel):
    __tablename__ = "users"
    username = Column(String(64), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(enum_column_type(UserRole), nullable=False, default=UserRole.AGENT)
