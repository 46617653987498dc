import os

os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["AUTO_MIGRATE"] = "false"

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from callrecords.core import database
from callrecords.core.database import Base
from callrecords.core.deps import limit_csv_uploads
from callrecords.main import app
from callrecords.models import CallRecord

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def session_factory():
    return TestingSessionLocal


@pytest.fixture()
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.query(CallRecord).delete()
        db.commit()
        db.close()


@pytest.fixture()
def make_call(db_session):
    def _make_call(
        caller_id="111",
        recipient="222",
        start=datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc),
        seconds=60,
        cost="1.000",
        reference="REF",
        currency="USD",
    ):
        record = CallRecord(
            caller_id=caller_id,
            recipient=recipient,
            start_time=start,
            end_time=start + timedelta(seconds=seconds),
            cost=Decimal(cost),
            reference=reference,
            currency=currency,
        )
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record

    return _make_call


@pytest.fixture()
def client(db_session):
    app.dependency_overrides[database.get_db] = override_get_db
    app.dependency_overrides[limit_csv_uploads] = lambda: None
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
