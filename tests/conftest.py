# tests/conftest.py
"""Shared fixtures: a throwaway SQLite file per test, an ORM session, and an API client."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Must be set before driverqueue.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SMS_ENABLED"] = "false"
os.environ.pop("API_KEY", None)

import pytest
from datetime import datetime, timedelta
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from driverqueue.database import create_tables, get_db
from driverqueue.main import app
from driverqueue.models.driver import Driver, DriverStatus

T0 = datetime(2026, 3, 2, 8, 0, 0)


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'queue.db'}",
        connect_args={"check_same_thread": False},
    )
    create_tables(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_driver(db):
    """Insert a driver row directly and return its id."""
    seq = {"n": 0}

    def _make(name=None, plate=None, minutes=0, status=DriverStatus.WAITING,
              entry_time=None, called_time=None, call_attempts=0):
        seq["n"] += 1
        driver = Driver(
            name=name or f"Driver {seq['n']}",
            plate=plate or f"TST-{1000 + seq['n']}",
            phone_number=f"+55119{seq['n']:08d}",
            status=status,
            entry_time=entry_time or T0 + timedelta(minutes=minutes),
            called_time=called_time,
            call_attempts=call_attempts,
        )
        db.add(driver)
        db.commit()
        return driver.id

    return _make


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
