from typing import Optional

from sqlalchemy import String, and_ as sql_and, func, or_ as sql_or, true

from callrecords.core.types import as_utc
from callrecords.schemas import StatisticsFilter
from callrecords.services.repository import Predicate


def always(record) -> object:
    return true()


def and_(left: Predicate, right: Predicate) -> Predicate:
    def predicate(record):
        return sql_and(left(record), right(record))

    return predicate


def or_(left: Predicate, right: Predicate) -> Predicate:
    def predicate(record):
        return sql_or(left(record), right(record))

    return predicate


def _normalized(column):
    return func.lower(func.trim(column), type_=String)


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def build_filter_predicate(criteria: Optional[StatisticsFilter]) -> Predicate:
    """Combine the active criteria of ``criteria`` into one predicate.

    Unset or blank criteria do not restrict anything. The phone number is
    matched as a case-insensitive substring of either party; the currency
    must match exactly, ignoring case and surrounding whitespace.
    """
    predicate: Predicate = always
    if criteria is None:
        return predicate

    if criteria.start_date is not None:
        start_date = as_utc(criteria.start_date)
        predicate = and_(predicate, lambda c: c.start_time >= start_date)

    if criteria.end_date is not None:
        end_date = as_utc(criteria.end_date)
        predicate = and_(predicate, lambda c: c.end_time <= end_date)

    if not _blank(criteria.phone_number):
        phone_number = criteria.phone_number.strip().lower()

        def caller_matches(c):
            return _normalized(c.caller_id).contains(phone_number, autoescape=True)

        def recipient_matches(c):
            return _normalized(c.recipient).contains(phone_number, autoescape=True)

        predicate = and_(predicate, or_(caller_matches, recipient_matches))

    if not _blank(criteria.currency):
        currency = criteria.currency.strip().lower()
        predicate = and_(predicate, lambda c: _normalized(c.currency) == currency)

    return predicate
