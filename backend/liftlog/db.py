from datetime import datetime, timezone
from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from .settings import get_settings

settings = get_settings()


def make_engine(url: str, **kwargs):
    connect_args = kwargs.pop("connect_args", {})
    if url.startswith("sqlite"):
        # Tool calls and HTTP handlers may run on different threads
        connect_args.setdefault("check_same_thread", False)
    engine = create_engine(url, pool_pre_ping=True, connect_args=connect_args, **kwargs)
    if url.startswith("sqlite"):
        event.listen(engine, "connect", _enable_sqlite_fks)
    return engine


def _enable_sqlite_fks(dbapi_conn, _record):
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite hands back naive datetimes, so we store them that way."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# Create the SQLAlchemy engine
engine = make_engine(settings.DATABASE_URL)

# Define the base class that all models should inherit from
class Base(DeclarativeBase):
    pass

# Session factory
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

def init_db(bind=None):
    from liftlog import models  # noqa: F401  # registers every table on Base.metadata
    Base.metadata.create_all(bind or engine)

# Dependency for FastAPI routes
def get_db(request: Request):
    factory = getattr(request.app.state, "session_factory", SessionLocal)
    db = factory()
    try:
        yield db
    finally:
        db.close()
