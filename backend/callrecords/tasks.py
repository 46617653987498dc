import logging
from pathlib import Path

from celery import shared_task
from sqlalchemy.orm import Session

from callrecords.core.database import SessionLocal
from callrecords.services.call_records import CallRecordService

logger = logging.getLogger(__name__)


class CsvImportFailed(Exception):
    pass


@shared_task(
    name="callrecords.tasks.import_call_records_csv",
    bind=True,
    autoretry_for=(OSError,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 5},
)
def import_call_records_csv(self, path: str) -> dict:
    db: Session = SessionLocal()
    try:
        with Path(path).open("rb") as source:
            result = CallRecordService.from_session(db).add_call_records_from_csv(source)
        if result.is_error:
            logger.error("CSV import of %s failed: %s", path, result.error.code)
            raise CsvImportFailed(result.error.description)
        return result.value.model_dump()
    finally:
        db.close()
