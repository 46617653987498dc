"""Parsing of call detail record CSV exports.

Each data row carries ``caller_id, recipient, call_date, call_time,
duration_seconds, cost, reference, currency``. The date and time mark the end
of the call; the start is derived by subtracting the duration. Rows that
cannot be turned into a valid :class:`AddCallRecordRequest` are logged and
skipped so one bad line never sinks a whole file.
"""

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import BinaryIO, Iterator, List, Union

from pydantic import ValidationError

from callrecords.schemas import AddCallRecordRequest

logger = logging.getLogger(__name__)

EXPECTED_FIELDS = 8

_DATE_PATTERN = re.compile(r"^\d{2}/\d{2}/\d{4}$")
_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


class RowError(ValueError):
    pass


@dataclass
class CsvParseReport:
    requests: List[AddCallRecordRequest] = field(default_factory=list)
    skipped_rows: List[int] = field(default_factory=list)


def parse_call_date(value: str) -> datetime:
    value = value.strip()
    if not _DATE_PATTERN.match(value):
        raise RowError(f"invalid call date {value!r}")
    try:
        parsed = datetime.strptime(value, "%d/%m/%Y")
    except ValueError as exc:
        raise RowError(f"invalid call date {value!r}") from exc
    return parsed.replace(tzinfo=timezone.utc)


def parse_call_time(value: str) -> timedelta:
    match = _TIME_PATTERN.match(value.strip())
    if not match:
        raise RowError(f"invalid call time {value!r}")
    hours, minutes, seconds = (int(part or 0) for part in match.groups())
    if hours > 23 or minutes > 59 or seconds > 59:
        raise RowError(f"invalid call time {value!r}")
    return timedelta(hours=hours, minutes=minutes, seconds=seconds)


def parse_duration(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError as exc:
        raise RowError(f"invalid duration {value!r}") from exc


def parse_cost(value: str) -> Decimal:
    try:
        cost = Decimal(value.strip())
    except InvalidOperation as exc:
        raise RowError(f"invalid cost {value!r}") from exc
    if not cost.is_finite():
        raise RowError(f"invalid cost {value!r}")
    return cost


def parse_row(row: List[str]) -> AddCallRecordRequest:
    if len(row) < EXPECTED_FIELDS:
        raise RowError(f"expected {EXPECTED_FIELDS} fields, got {len(row)}")
    caller_id, recipient, call_date, call_time, duration, cost, reference, currency = row[:EXPECTED_FIELDS]

    end_time = parse_call_date(call_date) + parse_call_time(call_time)
    start_time = end_time - timedelta(seconds=parse_duration(duration))

    return AddCallRecordRequest(
        caller_id=caller_id.strip(),
        recipient=recipient.strip(),
        start_time=start_time,
        end_time=end_time,
        cost=parse_cost(cost),
        reference=reference.strip(),
        currency=currency.strip(),
    )


def _lines(source: Union[bytes, BinaryIO]) -> Iterator[bytes]:
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    return iter(source)


def split_line(raw: bytes) -> List[str]:
    """Decode one physical line and split it on commas.

    Quotes carry no meaning, so a stray ``"`` can only spoil its own row.
    """
    text = raw.decode("utf-8").rstrip("\r\n")
    return next(csv.reader([text], quoting=csv.QUOTE_NONE), [])


def parse_call_records_csv(source: Union[bytes, BinaryIO]) -> CsvParseReport:
    report = CsvParseReport()

    for row_number, raw in enumerate(_lines(source), start=1):
        if row_number == 1:
            continue
        try:
            row = split_line(raw)
            if not any(value.strip() for value in row):
                continue
            report.requests.append(parse_row(row))
        except (RowError, ValidationError, UnicodeDecodeError) as exc:
            logger.warning("Skipping CSV row %s (%r): %s", row_number, raw, exc)
            report.skipped_rows.append(row_number)
        except Exception:
            logger.exception("Unexpected error parsing CSV row %s: %r", row_number, raw)
            report.skipped_rows.append(row_number)
    return report
