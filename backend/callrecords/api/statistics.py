from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends

from callrecords.core.deps import get_statistic_service, unwrap
from callrecords.schemas import (
    AverageCostOut,
    AverageDurationOut,
    CallRecordOut,
    CallsPerPeriodOut,
    CallVolumeDataPoint,
    CostByCurrencyOut,
    StatisticsFilter,
    StatisticsGranularity,
    StatisticsPeriodFilter,
    TotalCallsOut,
)
from callrecords.services.statistics import StatisticService

router = APIRouter(prefix="/statistic-api/v1", tags=["statistics"])


def statistics_filter(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    phone_number: Optional[str] = None,
    currency: Optional[str] = None,
) -> StatisticsFilter:
    return StatisticsFilter(start_date=start_date, end_date=end_date, phone_number=phone_number, currency=currency)


def period_filter(
    granularity: StatisticsGranularity,
    criteria: StatisticsFilter = Depends(statistics_filter),
) -> StatisticsPeriodFilter:
    return StatisticsPeriodFilter(granularity=granularity, **criteria.model_dump())


@router.get("/average-cost", response_model=AverageCostOut)
def average_cost(
    criteria: StatisticsFilter = Depends(statistics_filter),
    service: StatisticService = Depends(get_statistic_service),
):
    return AverageCostOut(average_cost=unwrap(service.get_average_call_cost(criteria)))


@router.get("/total-calls", response_model=TotalCallsOut)
def total_calls(
    criteria: StatisticsFilter = Depends(statistics_filter),
    service: StatisticService = Depends(get_statistic_service),
):
    return TotalCallsOut(total_calls=unwrap(service.get_total_call_count(criteria)))


@router.get("/average-duration", response_model=AverageDurationOut)
def average_duration(
    criteria: StatisticsFilter = Depends(statistics_filter),
    service: StatisticService = Depends(get_statistic_service),
):
    duration = unwrap(service.get_average_call_duration(criteria))
    return AverageDurationOut(average_duration_seconds=int(duration.total_seconds()))


@router.get("/longest-calls/{count}", response_model=List[CallRecordOut])
def longest_calls(
    count: int,
    criteria: StatisticsFilter = Depends(statistics_filter),
    service: StatisticService = Depends(get_statistic_service),
):
    return unwrap(service.get_longest_calls(count, criteria))


@router.get("/calls-per-period", response_model=CallsPerPeriodOut)
def calls_per_period(
    criteria: StatisticsPeriodFilter = Depends(period_filter),
    service: StatisticService = Depends(get_statistic_service),
):
    rate = unwrap(service.get_calls_per_period(criteria))
    return CallsPerPeriodOut(granularity=criteria.granularity, calls_per_period=rate)


@router.get("/call-volume-trend", response_model=List[CallVolumeDataPoint])
def call_volume_trend(
    criteria: StatisticsPeriodFilter = Depends(period_filter),
    service: StatisticService = Depends(get_statistic_service),
):
    return unwrap(service.get_call_volume_trend(criteria))


@router.get("/cost-by-currency", response_model=CostByCurrencyOut)
def cost_by_currency(
    criteria: StatisticsFilter = Depends(statistics_filter),
    service: StatisticService = Depends(get_statistic_service),
):
    return CostByCurrencyOut(totals=unwrap(service.get_total_cost_by_currency(criteria)))
