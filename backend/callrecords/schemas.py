import enum
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Generic, List, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from callrecords.core.types import as_utc

T = TypeVar("T")


def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return as_utc(value)


class AddCallRecordRequest(BaseModel):
    caller_id: str = Field(min_length=1, max_length=20)
    recipient: str = Field(min_length=1, max_length=20)
    start_time: datetime
    end_time: datetime
    cost: Decimal = Field(gt=0)
    reference: str = Field(min_length=1, max_length=255)
    currency: str = Field(min_length=3, max_length=3)

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _to_utc(value)

    @model_validator(mode="after")
    def check_time_order(self) -> "AddCallRecordRequest":
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class UpdateCallRecordRequest(BaseModel):
    """Patch payload: only the fields that are set overwrite the stored record."""

    caller_id: Optional[str] = Field(default=None, min_length=1, max_length=20)
    recipient: Optional[str] = Field(default=None, min_length=1, max_length=20)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    cost: Optional[Decimal] = Field(default=None, gt=0)
    reference: Optional[str] = Field(default=None, min_length=1, max_length=255)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _to_utc(value)


class CallRecordOut(BaseModel):
    id: UUID
    caller_id: str
    recipient: str
    call_date: date
    start_time: datetime
    end_time: datetime
    duration: int
    cost: Decimal
    reference: str
    currency: str

    class Config:
        from_attributes = True


class PaginationResponse(BaseModel, Generic[T]):
    items: List[T]
    next_page: Optional[int]
    total_pages: int
    total: int


class CsvImportResult(BaseModel):
    imported: int
    skipped_rows: List[int] = []


class StatisticsGranularity(str, enum.Enum):
    HOURLY = "Hourly"
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    YEARLY = "Yearly"


class StatisticsFilter(BaseModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    phone_number: Optional[str] = None
    currency: Optional[str] = None


class StatisticsPeriodFilter(StatisticsFilter):
    granularity: StatisticsGranularity


class CallVolumeDataPoint(BaseModel):
    period: datetime
    call_count: int


class AverageCostOut(BaseModel):
    average_cost: Decimal


class TotalCallsOut(BaseModel):
    total_calls: int


class AverageDurationOut(BaseModel):
    average_duration_seconds: int


class CallsPerPeriodOut(BaseModel):
    granularity: StatisticsGranularity
    calls_per_period: float


class CostByCurrencyOut(BaseModel):
    totals: Dict[str, Decimal]
