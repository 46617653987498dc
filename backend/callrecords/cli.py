from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from sqlalchemy.orm import Session

from callrecords.celery_app import celery_app
from callrecords.core.database import SessionLocal
from callrecords.schemas import StatisticsFilter
from callrecords.services.call_records import CallRecordService
from callrecords.services.statistics import StatisticService

app = typer.Typer()


@app.command()
def import_csv(path: Path, background: bool = False):
    """Import call records from a CSV export."""
    if not path.is_file():
        typer.echo(f"File not found: {path}", err=True)
        raise typer.Exit(code=1)

    if background:
        task = celery_app.send_task("callrecords.tasks.import_call_records_csv", args=[str(path.resolve())])
        typer.echo(f"Import queued: {task.id}")
        return

    db: Session = SessionLocal()
    try:
        with path.open("rb") as source:
            result = CallRecordService.from_session(db).add_call_records_from_csv(source)
    finally:
        db.close()
    if result.is_error:
        typer.echo(f"Import failed: {result.error.description}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Imported {result.value.imported} call records")
    if result.value.skipped_rows:
        typer.echo(f"Skipped rows: {', '.join(str(row) for row in result.value.skipped_rows)}")


@app.command()
def stats(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    phone_number: Optional[str] = None,
    currency: Optional[str] = None,
):
    """Print headline statistics for the matching call records."""
    criteria = StatisticsFilter(start_date=start_date, end_date=end_date, phone_number=phone_number, currency=currency)
    db: Session = SessionLocal()
    try:
        service = StatisticService.from_session(db)
        results = {
            "Total calls": service.get_total_call_count(criteria),
            "Average cost": service.get_average_call_cost(criteria),
            "Average duration": service.get_average_call_duration(criteria),
            "Cost by currency": service.get_total_cost_by_currency(criteria),
        }
    finally:
        db.close()
    for label, result in results.items():
        if result.is_error:
            typer.echo(f"{label}: error ({result.error.code})", err=True)
            continue
        value = result.value
        if isinstance(value, dict):
            value = ", ".join(f"{code} {total}" for code, total in sorted(value.items())) or "-"
        typer.echo(f"{label}: {value}")


if __name__ == "__main__":
    app()
