"""
Ivay Shop - Database Configuration
===================================
Engine, SessionLocal, Base, get_db dependency and the unit-of-work helper.
All models across all modules inherit from this Base.
"""

from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from config.settings import DATABASE_URL, IS_SQLITE

if IS_SQLITE:
    _sqlite_kwargs = {"connect_args": {"check_same_thread": False}}
    if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        # In-memory databases must share one connection across threads
        _sqlite_kwargs["poolclass"] = StaticPool
    engine = create_engine(DATABASE_URL, **_sqlite_kwargs)
else:
    engine = create_engine(
        DATABASE_URL,
        pool_size=20,
        max_overflow=40,
        pool_timeout=30,
        pool_recycle=1800,  # Refresh connections every 30 minutes
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: yields a database session, auto-closes after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session):
    """
    Run a block as one transaction: commit on success, rollback on any exception.
    Every mutating service method wraps its reads and writes in this.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
