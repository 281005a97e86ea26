from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Base(DeclarativeBase):
    pass


def create_db_engine(database_url: str) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across sessions."""
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(
        database_url,
        connect_args={"check_same_thread": False}  # Needed for SQLite
    )


def init_db(engine: Engine) -> None:
    # Import models so their tables register on Base.metadata
    from snipsearch.core import models  # noqa: F401

    Base.metadata.create_all(engine)


def create_session_factory(database_url: Optional[str] = None) -> sessionmaker:
    if database_url is None:
        from snipsearch.config import Settings

        settings = Settings()
        settings.ensure_db_dir()
        database_url = settings.database_url

    engine = create_db_engine(database_url)
    init_db(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
