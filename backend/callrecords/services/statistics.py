import logging
from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List

from sqlalchemy.orm import Session

from callrecords.core.errors import Error, Result
from callrecords.core.types import as_utc
from callrecords.models import CallRecord
from callrecords.schemas import (
    CallVolumeDataPoint,
    StatisticsFilter,
    StatisticsGranularity,
    StatisticsPeriodFilter,
)
from callrecords.services.filters import build_filter_predicate
from callrecords.services.repository import CallRecordRepository

logger = logging.getLogger(__name__)

COST_PLACES = Decimal("0.001")


def period_start(moment: datetime, granularity: StatisticsGranularity) -> datetime:
    """Start of the UTC period containing ``moment``; weeks start on Monday."""
    moment = as_utc(moment)
    if granularity == StatisticsGranularity.HOURLY:
        return moment.replace(minute=0, second=0, microsecond=0)
    if granularity == StatisticsGranularity.DAILY:
        return moment.replace(hour=0, minute=0, second=0, microsecond=0)
    if granularity == StatisticsGranularity.WEEKLY:
        day = moment.replace(hour=0, minute=0, second=0, microsecond=0)
        return day - timedelta(days=day.weekday())
    if granularity == StatisticsGranularity.MONTHLY:
        return datetime(moment.year, moment.month, 1, tzinfo=timezone.utc)
    if granularity == StatisticsGranularity.YEARLY:
        return datetime(moment.year, 1, 1, tzinfo=timezone.utc)
    raise ValueError(f"Unsupported granularity: {granularity}")


def count_periods(start: datetime, end: datetime, granularity: StatisticsGranularity) -> float:
    """Number of ``granularity`` periods spanned by ``[start, end]``, at least 1.

    Hours, days and weeks are fractional. Months and years count whole
    calendar periods, less one when the end falls earlier in its month or
    year than the start.
    """
    start, end = as_utc(start), as_utc(end)
    span = end - start
    periods: float = 0
    if granularity == StatisticsGranularity.HOURLY:
        periods = span.total_seconds() / 3600
    elif granularity == StatisticsGranularity.DAILY:
        periods = span.total_seconds() / 86400
    elif granularity == StatisticsGranularity.WEEKLY:
        periods = span.total_seconds() / (86400 * 7)
    elif granularity == StatisticsGranularity.MONTHLY:
        periods = (end.year - start.year) * 12 + end.month - start.month
        if end.day < start.day and periods > 0:
            periods -= 1
    elif granularity == StatisticsGranularity.YEARLY:
        periods = end.year - start.year
        if end.timetuple().tm_yday < start.timetuple().tm_yday and periods > 0:
            periods -= 1
    if periods <= 0:
        periods = 1
    return periods


class StatisticService:
    def __init__(self, repository: CallRecordRepository) -> None:
        self.repository = repository

    @classmethod
    def from_session(cls, db: Session) -> "StatisticService":
        return cls(CallRecordRepository(db))

    def get_average_call_cost(self, criteria: StatisticsFilter) -> Result[Decimal]:
        try:
            predicate = build_filter_predicate(criteria)
            total_cost = self.repository.sum(predicate, lambda c: c.cost)
            total_count = self.repository.count(predicate)

            if total_cost.is_error:
                return Result.fail(Error.unexpected(code="error_summing_call_costs"))
            if total_count.is_error:
                return Result.fail(Error.unexpected(code="error_counting_calls_for_average_cost"))

            if total_count.value == 0:
                return Result.ok(Decimal(0))

            average = total_cost.value / Decimal(total_count.value)
            return Result.ok(average.quantize(COST_PLACES, rounding=ROUND_HALF_UP))
        except Exception:
            logger.exception("Error calculating average call cost with filter: %s", criteria.model_dump())
            return Result.fail(Error.unexpected(description="An error occurred while calculating average call cost."))

    def get_total_call_count(self, criteria: StatisticsFilter) -> Result[int]:
        try:
            return self.repository.count(build_filter_predicate(criteria))
        except Exception:
            logger.exception("Error getting total call count with filter: %s", criteria.model_dump())
            return Result.fail(Error.unexpected(description="An error occurred while getting total call count."))

    def get_average_call_duration(self, criteria: StatisticsFilter) -> Result[timedelta]:
        try:
            predicate = build_filter_predicate(criteria)
            average = self.repository.average(predicate, lambda c: c.duration)
            if average.is_error:
                return Result.fail(Error.unexpected(code="error_calculating_average_duration_in_repository"))

            if average.value == 0:
                matches = self.repository.count(predicate)
                if not matches.is_error and matches.value == 0:
                    return Result.ok(timedelta(0))

            return Result.ok(timedelta(seconds=int(average.value)))
        except Exception:
            logger.exception("Error calculating average call duration with filter: %s", criteria.model_dump())
            return Result.fail(Error.unexpected(description="An error occurred while calculating average call duration."))

    def get_longest_calls(self, count: int, criteria: StatisticsFilter) -> Result[List[CallRecord]]:
        try:
            if count <= 0:
                return Result.ok([])
            return self.repository.list(
                build_filter_predicate(criteria),
                order_by=lambda c: c.duration.desc(),
                take=count,
            )
        except Exception:
            logger.exception("Error getting longest calls with filter: %s and count: %s", criteria.model_dump(), count)
            return Result.fail(Error.unexpected(description="An error occurred while getting longest calls."))

    def get_calls_per_period(self, criteria: StatisticsPeriodFilter) -> Result[float]:
        try:
            if criteria.start_date is None or criteria.end_date is None:
                return Result.fail(Error.validation(code="date_are_required_for_calls_per_period_calculation"))

            total_calls = self.repository.count(build_filter_predicate(criteria))
            if total_calls.is_error:
                return Result.fail(Error.unexpected(code="error_getting_total_call_count_for_calls_per_period"))
            if total_calls.value == 0:
                return Result.ok(0.0)

            periods = count_periods(criteria.start_date, criteria.end_date, criteria.granularity)
            return Result.ok(total_calls.value / periods)
        except Exception:
            logger.exception("Error calculating calls per period with filter: %s", criteria.model_dump())
            return Result.fail(Error.unexpected(description="An error occurred while calculating calls per period."))

    def get_call_volume_trend(self, criteria: StatisticsPeriodFilter) -> Result[List[CallVolumeDataPoint]]:
        try:
            if criteria.start_date is None or criteria.end_date is None:
                return Result.fail(Error.validation(code="date_are_required_for_call_volume_trend"))

            calls = self.repository.list(build_filter_predicate(criteria))
            if calls.is_error:
                return Result.fail(Error.unexpected(code="error_fetching_calls_for_volume_trend"))

            buckets = Counter(period_start(call.start_time, criteria.granularity) for call in calls.value)
            return Result.ok(
                [CallVolumeDataPoint(period=period, call_count=total) for period, total in sorted(buckets.items())]
            )
        except Exception:
            logger.exception("Error getting call volume trend with filter: %s", criteria.model_dump())
            return Result.fail(Error.unexpected(description="An error occurred while getting call volume trend."))

    def get_total_cost_by_currency(self, criteria: StatisticsFilter) -> Result[Dict[str, Decimal]]:
        try:
            calls = self.repository.list(build_filter_predicate(criteria))
            if calls.is_error:
                return Result.fail(Error.unexpected(code="error_fetching_calls_for_cost_by_currency"))

            totals: Dict[str, Decimal] = defaultdict(Decimal)
            for call in calls.value:
                totals[call.currency] += call.cost
            return Result.ok(dict(totals))
        except Exception:
            logger.exception("Error calculating total cost by currency with filter: %s", criteria.model_dump())
            return Result.fail(Error.unexpected(description="An error occurred while calculating total cost by currency."))
