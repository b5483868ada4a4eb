# cartledger/data/database.py
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from cartledger.utils.settings import DATABASE_URL, SQL_ECHO


class Base(DeclarativeBase):
    pass


def make_engine(url: str = DATABASE_URL, echo: bool = SQL_ECHO) -> Engine:
    """
    Builds the engine for a database URL.

    On SQLite every transaction starts as BEGIN IMMEDIATE, so writers are
    serialized from their first read (the closest thing to FOR UPDATE there).
    """
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

        @event.listens_for(engine, "connect")
        def _disable_pysqlite_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    return create_engine(url, echo=echo, pool_pre_ping=True)


def make_session_factory(bind: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=bind, autoflush=False)


engine = make_engine()
SessionLocal = make_session_factory(engine)


def init_db(bind: Engine = engine) -> None:
    # models must be imported before create_all so they land in Base.metadata
    from cartledger.data import models  # noqa: F401

    Base.metadata.create_all(bind=bind)


def get_db() -> Iterator[Session]:
    #session per request, close() rolls back anything left open (error, cancel, timeout)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
