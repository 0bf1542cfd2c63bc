from sqlalchemy import Column, Integer, DateTime, Enum
from sqlalchemy.orm import declarative_base
from dispatchdesk.utils.timeutils import utcnow

Base = declarative_base()


def enum_column_type(enum_cls):
    # Persist the enum values ("In-Transit"), not the member names.
    return Enum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=32,
    )


class BaseModel(Base):
    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
