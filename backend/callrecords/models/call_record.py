import uuid
from datetime import date

from sqlalchemy import Column, Numeric, String, Uuid
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.sql import func

from callrecords.core.database import Base
from callrecords.core.types import UTCDateTime, seconds_between


class CallRecord(Base):
    __tablename__ = "call_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    caller_id = Column(String(20), nullable=False, index=True)
    recipient = Column(String(20), nullable=False, index=True)
    start_time = Column(UTCDateTime(), nullable=False, index=True)
    end_time = Column(UTCDateTime(), nullable=False)
    cost = Column(Numeric(10, 3), nullable=False)
    reference = Column(String(255), nullable=False, index=True)
    currency = Column(String(3), nullable=False)
    inserted = Column(UTCDateTime(), server_default=func.now(), nullable=False)
    last_updated = Column(UTCDateTime(), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def call_date(self) -> date:
        return self.start_time.date()

    @hybrid_property
    def duration(self) -> int:
        return int(round((self.end_time - self.start_time).total_seconds()))

    @duration.expression
    def duration(cls):
        return seconds_between(cls.start_time, cls.end_time)

    def __repr__(self) -> str:
        return f"<CallRecord {self.id} {self.reference}>"
