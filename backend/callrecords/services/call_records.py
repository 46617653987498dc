import logging
from datetime import datetime
from typing import BinaryIO, Iterable, List, Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session

from callrecords.core.errors import Error, Result
from callrecords.models import CallRecord
from callrecords.schemas import (
    AddCallRecordRequest,
    CsvImportResult,
    PaginationResponse,
    StatisticsFilter,
    UpdateCallRecordRequest,
)
from callrecords.services.csv_import import parse_call_records_csv
from callrecords.services.filters import build_filter_predicate
from callrecords.services.pagination import to_page_response
from callrecords.services.repository import CallRecordRepository

logger = logging.getLogger(__name__)

NOT_FOUND = "call_record_not_found"


def _not_found() -> Result:
    return Result.fail(Error.not_found(description="Call record was not found.", code=NOT_FOUND))


def _reference_required() -> Result:
    return Result.fail(Error.validation(description="Reference is required.", code="reference_is_required"))


def build_call_record(request: AddCallRecordRequest) -> CallRecord:
    return CallRecord(
        caller_id=request.caller_id,
        recipient=request.recipient,
        start_time=request.start_time,
        end_time=request.end_time,
        cost=request.cost,
        reference=request.reference,
        currency=request.currency,
    )


def apply_patch(record: CallRecord, patch: UpdateCallRecordRequest) -> CallRecord:
    """Overwrite the fields present in ``patch``; everything else is kept."""
    for name, value in patch.model_dump(exclude_none=True).items():
        setattr(record, name, value)
    return record


class CallRecordService:
    def __init__(self, repository: CallRecordRepository) -> None:
        self.repository = repository

    @classmethod
    def from_session(cls, db: Session) -> "CallRecordService":
        return cls(CallRecordRepository(db))

    def _by_id(self, call_record_id: UUID) -> Result[Optional[CallRecord]]:
        return self.repository.get_single(lambda c: c.id == call_record_id)

    def _by_reference(self, reference: str) -> Result[Optional[CallRecord]]:
        return self.repository.get_single(lambda c: c.reference == reference)

    # reads

    def get_call_record(self, call_record_id: UUID) -> Result[CallRecord]:
        try:
            found = self._by_id(call_record_id)
            if found.is_error:
                return found
            if found.value is None:
                return _not_found()
            return found
        except Exception:
            logger.exception("Exception caught while getting call record by id: %s", call_record_id)
            return Result.fail(Error.unexpected())

    def get_call_record_by_reference(self, reference: str) -> Result[CallRecord]:
        try:
            if not reference or not reference.strip():
                return _reference_required()
            found = self._by_reference(reference)
            if found.is_error:
                return found
            if found.value is None:
                return _not_found()
            return found
        except Exception:
            logger.exception("Exception caught while getting call record by reference: %s", reference)
            return Result.fail(Error.unexpected())

    def get_call_records(
        self,
        page: int = 0,
        page_size: int = 50,
        phone_number: Optional[str] = None,
        start_timestamp: Optional[datetime] = None,
        end_timestamp: Optional[datetime] = None,
        currency: Optional[str] = None,
    ) -> Result[PaginationResponse]:
        try:
            predicate = build_filter_predicate(
                StatisticsFilter(
                    start_date=start_timestamp,
                    end_date=end_timestamp,
                    phone_number=phone_number,
                    currency=currency,
                )
            )
            total = self.repository.count(predicate)
            if total.is_error:
                return total

            items: List[CallRecord] = []
            if total.value > 0:
                listed = self.repository.list(
                    predicate,
                    order_by=lambda c: (c.start_time.desc(), c.id),
                    skip=page * page_size,
                    take=page_size,
                )
                if listed.is_error:
                    return listed
                items = listed.value

            return Result.ok(to_page_response(items, page, page_size, total.value))
        except Exception:
            logger.exception("Exception caught while getting call records list")
            return Result.fail(Error.unexpected())

    # writes

    def add_call_record(self, request: AddCallRecordRequest) -> Result[CallRecord]:
        try:
            return self.repository.add(build_call_record(request))
        except Exception:
            logger.exception("Exception caught while adding call record")
            return Result.fail(Error.unexpected())

    def add_call_records_range(self, requests: Iterable[AddCallRecordRequest]) -> Result[bool]:
        try:
            return self.repository.add_range([build_call_record(request) for request in requests])
        except Exception:
            logger.exception("Exception caught while adding call records list")
            return Result.fail(Error.unexpected())

    def add_call_records_from_csv(self, source: Union[bytes, BinaryIO]) -> Result[CsvImportResult]:
        try:
            report = parse_call_records_csv(source)
            if not report.requests:
                return Result.fail(Error.validation(description="No valid call records found in the CSV file."))

            added = self.add_call_records_range(report.requests)
            if added.is_error:
                logger.error("Bulk insert of %s CSV call records failed: %s", len(report.requests), added.error.code)
                return Result.fail(Error.unexpected(description="Failed to store call records from the CSV file."))

            logger.info("Imported %s call records from CSV, skipped %s rows", len(report.requests), len(report.skipped_rows))
            return Result.ok(CsvImportResult(imported=len(report.requests), skipped_rows=report.skipped_rows))
        except Exception:
            logger.exception("Exception caught while importing call records from CSV")
            return Result.fail(Error.unexpected())

    def _patch(self, found: Result[Optional[CallRecord]], request: UpdateCallRecordRequest) -> Result[CallRecord]:
        if found.is_error:
            return found
        if found.value is None:
            return _not_found()
        start_time = request.start_time or found.value.start_time
        end_time = request.end_time or found.value.end_time
        if end_time < start_time:
            return Result.fail(
                Error.validation(description="End time must not be before start time.", code="end_time_before_start_time")
            )
        return self.repository.update(apply_patch(found.value, request))

    def update_call_record(self, call_record_id: UUID, request: UpdateCallRecordRequest) -> Result[CallRecord]:
        try:
            return self._patch(self._by_id(call_record_id), request)
        except Exception:
            logger.exception("Exception caught while updating call record by id: %s", call_record_id)
            return Result.fail(Error.unexpected())

    def update_call_record_by_reference(self, reference: str, request: UpdateCallRecordRequest) -> Result[CallRecord]:
        try:
            if not reference or not reference.strip():
                return _reference_required()
            return self._patch(self._by_reference(reference), request)
        except Exception:
            logger.exception("Exception caught while updating call record by reference: %s", reference)
            return Result.fail(Error.unexpected())

    def _remove(self, found: Result[Optional[CallRecord]]) -> Result[CallRecord]:
        if found.is_error:
            return found
        if found.value is None:
            return _not_found()
        return self.repository.remove(found.value)

    def remove_call_record(self, call_record_id: UUID) -> Result[CallRecord]:
        try:
            return self._remove(self._by_id(call_record_id))
        except Exception:
            logger.exception("Exception caught while deleting call record by id: %s", call_record_id)
            return Result.fail(Error.unexpected())

    def remove_call_record_by_reference(self, reference: str) -> Result[CallRecord]:
        try:
            if not reference or not reference.strip():
                return _reference_required()
            return self._remove(self._by_reference(reference))
        except Exception:
            logger.exception("Exception caught while deleting call record by reference: %s", reference)
            return Result.fail(Error.unexpected())
