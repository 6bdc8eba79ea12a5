# app/database.py
"""
Database connection, session management, and table creation.
Uses SQLAlchemy (SQLite by default, any SQLAlchemy URL works). All models
are auto-imported here so create_tables() creates every table in one call.
"""

from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from app.config import settings
from app.errors import PersistenceError
from app.utils.clock import utcnow
from app.utils.logger import get_logger

logger = get_logger(__name__)


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        # FastAPI runs sync routes in a threadpool; SQLite needs this off
        return {"check_same_thread": False, "timeout": settings.DB_TIMEOUT_SECONDS}
    return {"connect_timeout": settings.DB_TIMEOUT_SECONDS}


engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args(settings.DATABASE_URL),
    pool_pre_ping=True,          # Auto-reconnect if DB connection drops
    echo=False,                  # Set True to log all SQL queries (debug only)
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency — yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """
    Unit of work: everything added inside the block commits together or not at all.
    Storage failures surface as PersistenceError; domain errors pass through untouched.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Transaction rolled back: {e}", exc_info=True)
        raise PersistenceError() from e
    except Exception:
        db.rollback()
        raise


def create_tables(bind=None):
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from app.models.user import User              # noqa
    from app.models.slot import Slot              # noqa
    from app.models.booking import Booking        # noqa
    from app.models.payment import Payment        # noqa
    from app.models.system_log import SystemLog   # noqa

    Base.metadata.create_all(bind=bind or engine)


DEFAULT_USERS = [
    {"id": "user-1", "username": "admin", "password": "admin123", "role": "admin"},
    {"id": "user-2", "username": "user1", "password": "user123", "role": "consumer"},
]
DEFAULT_SLOTS = ["S1", "S2", "S3"]


def seed_default_data(db: Session):
    """Insert the default accounts and slots if they are not there yet."""
    from app.models.user import User
    from app.models.slot import Slot

    now = utcnow()
    for u in DEFAULT_USERS:
        if db.get(User, u["id"]) is None:
            db.add(User(created_at=now, **u))
    for slot_id in DEFAULT_SLOTS:
        if db.get(Slot, slot_id) is None:
            db.add(Slot(id=slot_id, status="free", category="General",
                        is_under_maintenance=False, last_sensor_update=None))
    db.commit()
