"""Shared fixtures: a throwaway SQLite database and fresh per-slot locks."""

import os
import sys
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="smart_parking_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["ENABLE_BACKGROUND_JOBS"] = "false"
os.environ["API_KEY"] = ""
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from app.database import Base, SessionLocal, create_tables, engine, seed_default_data
from app.services.slot_locks import slot_locks


@pytest.fixture
def db():
    create_tables()
    Base.metadata.drop_all(bind=engine)
    create_tables()
    session = SessionLocal()
    seed_default_data(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def fresh_slot_locks():
    # asyncio locks bind to the loop that first waits on them; each test gets its own loop
    slot_locks.clear()
    yield
    slot_locks.clear()
