from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from callrecords.core.config import settings
from callrecords.core.deps import get_call_record_service, limit_csv_uploads, unwrap
from callrecords.schemas import (
    AddCallRecordRequest,
    CallRecordOut,
    CsvImportResult,
    PaginationResponse,
    UpdateCallRecordRequest,
)
from callrecords.services.call_records import CallRecordService

router = APIRouter(prefix="/call-record-api/v1", tags=["call-records"])


@router.get("/reference/{reference}", response_model=CallRecordOut)
def get_call_record_by_reference(reference: str, service: CallRecordService = Depends(get_call_record_service)):
    return unwrap(service.get_call_record_by_reference(reference))


@router.get("/{call_record_id}", response_model=CallRecordOut)
def get_call_record(call_record_id: UUID, service: CallRecordService = Depends(get_call_record_service)):
    return unwrap(service.get_call_record(call_record_id))


@router.get("/", response_model=PaginationResponse[CallRecordOut])
def list_call_records(
    page: int = Query(default=0, ge=0),
    page_size: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    phone_number: Optional[str] = None,
    start_timestamp: Optional[datetime] = None,
    end_timestamp: Optional[datetime] = None,
    currency: Optional[str] = None,
    service: CallRecordService = Depends(get_call_record_service),
):
    result = unwrap(
        service.get_call_records(
            page=page,
            page_size=page_size,
            phone_number=phone_number,
            start_timestamp=start_timestamp,
            end_timestamp=end_timestamp,
            currency=currency,
        )
    )
    return PaginationResponse[CallRecordOut](
        items=[CallRecordOut.model_validate(item) for item in result.items],
        next_page=result.next_page,
        total_pages=result.total_pages,
        total=result.total,
    )


@router.post("/upload-csv", response_model=CsvImportResult, dependencies=[Depends(limit_csv_uploads)])
def upload_csv(file: UploadFile = File(...), service: CallRecordService = Depends(get_call_record_service)):
    contents = file.file.read()
    if not contents:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded or file is empty.")
    return unwrap(service.add_call_records_from_csv(contents))


@router.post("/", response_model=CallRecordOut)
def add_call_record(payload: AddCallRecordRequest, service: CallRecordService = Depends(get_call_record_service)):
    return unwrap(service.add_call_record(payload))


@router.post("/bulk")
def add_call_records(payload: List[AddCallRecordRequest], service: CallRecordService = Depends(get_call_record_service)):
    return {"added": unwrap(service.add_call_records_range(payload))}


@router.put("/reference/{reference}", response_model=CallRecordOut)
def update_call_record_by_reference(
    reference: str,
    payload: UpdateCallRecordRequest,
    service: CallRecordService = Depends(get_call_record_service),
):
    return unwrap(service.update_call_record_by_reference(reference, payload))


@router.put("/{call_record_id}", response_model=CallRecordOut)
def update_call_record(
    call_record_id: UUID,
    payload: UpdateCallRecordRequest,
    service: CallRecordService = Depends(get_call_record_service),
):
    return unwrap(service.update_call_record(call_record_id, payload))


@router.delete("/reference/{reference}", response_model=CallRecordOut)
def remove_call_record_by_reference(reference: str, service: CallRecordService = Depends(get_call_record_service)):
    return unwrap(service.remove_call_record_by_reference(reference))


@router.delete("/{call_record_id}", response_model=CallRecordOut)
def remove_call_record(call_record_id: UUID, service: CallRecordService = Depends(get_call_record_service)):
    return unwrap(service.remove_call_record(call_record_id))
