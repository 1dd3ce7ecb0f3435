import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from credit_ledger.core.config import settings
from credit_ledger.core.exceptions import ConflictError, StoreTimeoutError

logger = logging.getLogger(__name__)


def _engine_options(dsn: str, timeout: float) -> dict[str, Any]:
    if dsn.startswith("sqlite"):
        # SQLite waits up to `timeout` seconds on a locked database
        return {"connect_args": {"check_same_thread": False, "timeout": timeout}}
    return {"pool_timeout": timeout, "pool_pre_ping": True}


engine = create_engine(
    settings.APP_DATABASE_DSN,
    **_engine_options(settings.APP_DATABASE_DSN, settings.LEDGER_STORE_TIMEOUT_SECONDS),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def is_store_timeout(exc: OperationalError) -> bool:
    """Whether an OperationalError means the store did not answer in time."""
    text = str(exc.orig).lower() if exc.orig is not None else str(exc).lower()
    return any(marker in text for marker in ("locked", "timeout", "timed out", "busy"))


@contextmanager
def store_errors(db: Session) -> Iterator[Session]:
    """Translate store failures into ledger errors, rolling back the session.

    stale version -> ConflictError, lock or pool wait -> StoreTimeoutError.
    Any other error is re-raised after the rollback.
    """
    try:
        yield db
    except StaleDataError as exc:
        db.rollback()
        logger.warning("Concurrent modification detected: %s", exc)
        raise ConflictError(
            "The credit was modified by another operation, retry with fresh data"
        ) from exc
    except PoolTimeoutError as exc:
        db.rollback()
        raise StoreTimeoutError("Ledger store did not respond in time") from exc
    except OperationalError as exc:
        db.rollback()
        if is_store_timeout(exc):
            raise StoreTimeoutError("Ledger store did not respond in time") from exc
        raise
    except BaseException:
        db.rollback()
        raise


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Run a block as one ledger transaction: commit on success, nothing on failure."""
    with store_errors(db):
        yield db
        db.commit()
