# bookkeeping/db/session.py
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from typing import Generator


def build_engine(database_url: str) -> Engine:
    """
    Create the SQLAlchemy engine for ``database_url``.
    SQLite connections get foreign keys switched on so that deleting a record
    cascades to its receipt the same way it does on MySQL/Postgres.
    """
    if not database_url:
        raise RuntimeError("DATABASE_URL not set in environment (.env)")

    if database_url.startswith("sqlite"):
        engine = create_engine(database_url, connect_args={"check_same_thread": False}, future=True)

        @event.listens_for(engine, "connect")
        def _enable_sqlite_fks(dbapi_conn, _record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(database_url, pool_pre_ping=True, future=True)


def build_session_factory(engine: Engine) -> sessionmaker:
    # expire_on_commit=False: repositories hand detached rows back to services
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine, future=True)


def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Yield a Session from ``session_factory`` and always close it.
    Usage (FastAPI dependency wrapper):
        db = Depends(get_db_dep)
    """
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
