from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from promocodes.core.config import settings


def enable_sqlite_foreign_keys(target: Engine) -> None:
    """Enforce foreign keys on every new SQLite connection of ``target``.

    The ledger relies on ``ON DELETE RESTRICT`` to keep codes and accounts
    with redemptions from being deleted; SQLite ignores it unless enabled.
    """

    @event.listens_for(target, "connect")
    def _set_pragma(dbapi_connection: Any, _connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()


def _connect_args(dsn: str) -> dict[str, Any]:
    if dsn.startswith("sqlite"):
        # Writers queue on the database lock instead of failing immediately
        return {"check_same_thread": False, "timeout": settings.DATABASE_BUSY_TIMEOUT}
    return {}


engine = create_engine(
    settings.APP_DATABASE_DSN,
    connect_args=_connect_args(settings.APP_DATABASE_DSN),
    pool_pre_ping=not settings.APP_DATABASE_DSN.startswith("sqlite"),
)
if engine.dialect.name == "sqlite":
    enable_sqlite_foreign_keys(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
