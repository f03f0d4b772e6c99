from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from .config import settings

class Base(DeclarativeBase):
    pass


def make_engine(url: str) -> Engine:
    """
    Build an engine for the given URL.

    On SQLite every transaction is opened with BEGIN IMMEDIATE so that a
    read-check-write sequence (availability check followed by an insert or
    update) holds the database write lock from its first statement. Other
    backends rely on row locks taken by the booking services.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    eng = create_engine(url, connect_args={"check_same_thread": False, "timeout": 30})

    @event.listens_for(eng, "connect")
    def _sqlite_connect(dbapi_connection, connection_record):
        # let SQLAlchemy's "begin" hook emit BEGIN instead of pysqlite
        dbapi_connection.isolation_level = None
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    @event.listens_for(eng, "begin")
    def _sqlite_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return eng


engine = make_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create any missing tables. Environments managed by alembic can skip this."""
    from . import models  # noqa: F401  (register mappers)
    Base.metadata.create_all(bind=engine)
