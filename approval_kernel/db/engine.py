"""
Module: approval_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management,
    and transactional scope utilities for the reference document backend.
Architecture position: Kernel > DB.  May import from db/base.py.
    create_tables/drop_tables import models so Base.metadata is populated.

Invariants enforced:
    - One module-level engine and session factory; every session is created
      from that factory.
    - session_scope() commits on success and rolls back on any exception.

Failure modes:
    - RuntimeError if get_engine/get_session_factory is called
      before init_engine_from_url().
    - ConfigurationError for in-memory SQLite URLs, which every worker
      thread would see as a separate empty database.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.orm import Session, sessionmaker

from approval_kernel.exceptions import ConfigurationError
from approval_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _is_sqlite_memory(url: URL) -> bool:
    if url.get_backend_name() != "sqlite":
        return False
    return url.database in (None, "", ":memory:") or url.query.get("mode") == "memory"


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
) -> Engine:
    """
    Initialize the SQLAlchemy engine from a database URL.

    SQLite URLs get ``check_same_thread=False`` because the async adapters
    open sessions from worker threads; pool sizing only applies to server
    databases.

    Args:
        database_url: SQLAlchemy URL (sqlite:///path.db, postgresql://...).
        echo: If True, log all SQL statements.
        pool_size: Connections kept in the pool (server databases).
        max_overflow: Max connections beyond pool_size (server databases).
        pool_pre_ping: Test connections before use.

    Returns:
        SQLAlchemy Engine instance.
    """
    global _engine, _SessionFactory

    url = make_url(database_url)
    if _is_sqlite_memory(url):
        raise ConfigurationError(
            "database_url",
            "in-memory SQLite is not shared across worker threads; use a file path",
        )
    if url.get_backend_name() == "sqlite":
        _engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
    else:
        _engine = create_engine(
            url,
            echo=echo,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=pool_pre_ping,
        )

    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    logger.info(
        "engine_initialized",
        extra={
            "dialect": url.get_backend_name(),
            "echo": echo,
        },
    )

    return _engine


def get_engine() -> Engine:
    """
    Get the current engine instance.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """
    Get the session factory for creating sessions.

    Each worker thread needs its own session; hand it the factory.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory


@contextmanager
def session_scope(
    factory: sessionmaker[Session] | None = None,
) -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    On normal exit the session is committed and closed.  On exception it
    is rolled back and closed, and the exception is re-raised.

    Usage:
        with session_scope() as session:
            session.add(entity)
    """
    session = (factory or get_session_factory())()
    logger.debug("transaction_started")
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create all document tables defined in the models."""
    from approval_kernel.db.base import Base
    import approval_kernel.models  # noqa: F401

    Base.metadata.create_all(get_engine())
    logger.info("tables_created", extra={"table_count": len(Base.metadata.tables)})


def drop_tables() -> None:
    """Drop all document tables. FOR TESTING AND RESET SCRIPTS ONLY."""
    from approval_kernel.db.base import Base
    import approval_kernel.models  # noqa: F401

    Base.metadata.drop_all(get_engine())
    logger.info("tables_dropped")


def reset_engine() -> None:
    """Dispose the engine and clear the module-level factory."""
    global _engine, _SessionFactory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None
