"""Database engine, session factory and transaction helper.

The store is chosen once at startup from ``settings.DATABASE_URL``:

- a server DSN (PostgreSQL, MySQL) gets the configured isolation level so
  multi-step writes run serializable;
- a ``sqlite`` URL gets ``check_same_thread=False`` for FastAPI's thread
  pool and ``PRAGMA foreign_keys=ON`` on every connection;
- ``memory://`` is an in-memory SQLite store shared through a single
  connection, used for local runs without a database server.
"""
import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, TypeVar

from sqlalchemy import create_engine, event as sa_event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.errors import ConflictError, PersistenceError, SerializationFailure

logger = logging.getLogger(__name__)

MEMORY_URL = "memory://"

Base = declarative_base()


def is_sqlite(url: str) -> bool:
    return url == MEMORY_URL or url.startswith("sqlite")


def build_engine(url: str, echo: bool = False) -> Engine:
    """Create the engine for ``url``, applying per-backend connection options."""
    if url == MEMORY_URL:
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )
    elif url.startswith("sqlite"):
        engine = create_engine(url, connect_args={"check_same_thread": False}, echo=echo)
    else:
        engine = create_engine(
            url,
            isolation_level=settings.DB_ISOLATION_LEVEL,
            pool_pre_ping=True,
            echo=echo,
        )

    if is_sqlite(url):
        @sa_event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = build_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(bind: Optional[Engine] = None) -> None:
    """Create all tables (SQLite stores only; server databases use Alembic)."""
    import app.models  # noqa: F401  registers every model on Base.metadata

    Base.metadata.create_all(bind=bind or engine)


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


UNIQUE_VIOLATION = "23505"
SERIALIZATION_FAILURE = "40001"

F = TypeVar("F", bound=Callable[..., Any])


def _sqlstate(exc: SQLAlchemyError) -> Optional[str]:
    # psycopg2 exposes pgcode, psycopg 3 sqlstate
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_unique_violation(exc: IntegrityError) -> bool:
    """True for a duplicate unique or primary key, False for FK/NOT NULL/CHECK."""
    code = _sqlstate(exc)
    if code is not None:
        return code == UNIQUE_VIOLATION
    return "UNIQUE constraint failed" in str(exc.orig)


def is_serialization_failure(exc: SQLAlchemyError) -> bool:
    return _sqlstate(exc) == SERIALIZATION_FAILURE


@contextmanager
def transaction(db: Session, conflict_message: str = "conflicting record") -> Iterator[Session]:
    """Run a unit of work: commit on success, roll back on any error.

    Store errors are translated before they leave the block:

    - a uniqueness or primary-key violation becomes ``ConflictError``;
    - a serialization failure becomes ``SerializationFailure``, which
      ``retry_on_serialization_failure`` turns into another attempt;
    - any other SQLAlchemy error, other integrity violations included,
      becomes ``PersistenceError``.

    Domain errors pass through after the rollback.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if is_unique_violation(exc):
            logger.warning("Integrity violation rolled back: %s", exc.orig)
            raise ConflictError(conflict_message) from exc
        logger.exception("Integrity violation rolled back")
        raise PersistenceError() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        if is_serialization_failure(exc):
            logger.info("Serialization failure rolled back: %s", exc.orig)
            raise SerializationFailure() from exc
        logger.exception("Transaction failed and was rolled back")
        raise PersistenceError() from exc
    except Exception:
        db.rollback()
        raise


def retry_on_serialization_failure(func: F) -> F:
    """Re-run a write service when its transaction loses a serialization race.

    The whole function runs again, so its pre-checks see the winner's
    committed rows. After ``DB_SERIALIZATION_RETRIES`` extra attempts the
    failure propagates as a 500.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        retries = settings.DB_SERIALIZATION_RETRIES
        for attempt in range(retries + 1):
            try:
                return func(*args, **kwargs)
            except SerializationFailure:
                if attempt == retries:
                    logger.error("%s still failing serialization after %d attempts", func.__name__, attempt + 1)
                    raise
                logger.info("Retrying %s after serialization failure (attempt %d)", func.__name__, attempt + 2)

    return wrapper  # type: ignore[return-value]
