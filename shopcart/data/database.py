# shopcart/data/database.py
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DataError, IntegrityError, OperationalError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from shopcart.domain.errors import OutOfRangeError, TransactionAbortError
from shopcart.utils.settings import (
    DATABASE_URL,
    DB_ECHO,
    DB_ISOLATION_LEVEL,
    DB_LOCK_TIMEOUT_SECONDS,
)
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


def build_engine(url: str = DATABASE_URL) -> Engine:
    """Create an engine whose lock waits are bounded by DB_LOCK_TIMEOUT_SECONDS."""
    kwargs = {"echo": DB_ECHO, "future": True}
    if DB_ISOLATION_LEVEL:
        kwargs["isolation_level"] = DB_ISOLATION_LEVEL

    if url.startswith("sqlite"):
        kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": DB_LOCK_TIMEOUT_SECONDS,
        }
    elif url.startswith("postgresql"):
        lock_timeout_ms = int(DB_LOCK_TIMEOUT_SECONDS * 1000)
        kwargs["connect_args"] = {"options": f"-c lock_timeout={lock_timeout_ms}"}
        kwargs["pool_pre_ping"] = True

    return create_engine(url, **kwargs)


def build_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


engine = build_engine()
SessionLocal = build_session_factory(engine)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Run a unit of work that either commits as a whole or leaves no trace.

    Any exception rolls the session back. Lock timeouts, deadlocks,
    serialization failures and unique-row races come out as
    TransactionAbortError; values the columns cannot hold come out as
    OutOfRangeError; everything else is re-raised unchanged.
    """
    try:
        yield db
        db.commit()
    except (DataError, OverflowError) as e:
        db.rollback()
        logger.warning(f"Value out of range for storage: {e!r}")
        raise OutOfRangeError("Value out of range") from e
    except (OperationalError, IntegrityError) as e:
        db.rollback()
        logger.warning(f"Transaction aborted by storage: {e.orig!r}")
        raise TransactionAbortError("Storage conflict, transaction rolled back") from e
    except BaseException:
        db.rollback()
        raise
