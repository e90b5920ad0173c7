from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from signal_engine.core.config import settings


def build_engine(database_url: str, echo: bool = False, **kwargs) -> Engine:
    """Create an engine; SQLite needs check_same_thread=False for worker threads."""
    connect_args = kwargs.pop("connect_args", {})
    if database_url.startswith("sqlite"):
        connect_args.setdefault("check_same_thread", False)
    engine = create_engine(database_url, echo=echo, connect_args=connect_args, **kwargs)
    if database_url.startswith("sqlite"):
        _enable_sqlite_savepoints(engine)
    return engine


def _enable_sqlite_savepoints(engine: Engine) -> None:
    # pysqlite defers BEGIN on its own, which breaks SAVEPOINT; emit it ourselves
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


# Create synchronous engine for basic operations
engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# Create session factories
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create base class for models
Base = declarative_base()


# Dependency to get database session
def get_db() -> Generator[Session, None, None]:
    """Get database session for sync operations"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_db_and_tables(bind: Engine = None) -> None:
    """Create database tables"""
    # Import all models so they're registered with Base
    from signal_engine import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
