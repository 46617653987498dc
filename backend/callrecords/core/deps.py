from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from callrecords.core.database import get_db
from callrecords.core.errors import ErrorType, Result
from callrecords.services.call_records import CallRecordService
from callrecords.services.rate_limit import csv_upload_limiter
from callrecords.services.statistics import StatisticService

ERROR_STATUS = {
    ErrorType.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorType.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorType.UNEXPECTED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_call_record_service(db: Session = Depends(get_db)) -> CallRecordService:
    return CallRecordService.from_session(db)


def get_statistic_service(db: Session = Depends(get_db)) -> StatisticService:
    return StatisticService.from_session(db)


def limit_csv_uploads(request: Request) -> None:
    client_key = request.client.host if request.client else "anonymous"
    if not csv_upload_limiter.hit(client_key):
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many uploads")


def unwrap(result: Result):
    if result.is_error:
        raise HTTPException(status_code=ERROR_STATUS[result.error.type], detail=result.error.as_dict())
    return result.value
