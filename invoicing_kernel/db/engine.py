"""
Process-wide PostgreSQL engine and the transaction boundary for invoice work.

Invoice operations depend on ``SELECT ... FOR UPDATE`` row locks, so the
engine is PostgreSQL-only and runs at READ COMMITTED: each locked re-read
sees the latest committed approvals and deletions.

Services only flush.  ``session_scope()`` (or a host framework's request
transaction) is where an approval batch, rejection or deletion becomes
durable or is discarded as a whole.
"""

import atexit
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from invoicing_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def init_engine_from_url(
    database_url: str,
    *,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_timeout: int = 30,
) -> Engine:
    """Create (or replace) the engine and session factory for ``database_url``."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()

    _engine = create_engine(
        database_url,
        echo=echo,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        pool_pre_ping=True,
        pool_recycle=1800,
        isolation_level="READ COMMITTED",
    )
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": _engine.dialect.name, "pool_size": pool_size},
    )
    return _engine


def init_engine_from_config(config=None) -> Engine:
    """Initialize from the ``database`` section of the invoicing config."""
    from invoicing_config import get_active_config

    database = (config or get_active_config()).database
    return init_engine_from_url(
        database.url,
        pool_size=database.pool_size,
        max_overflow=database.max_overflow,
        pool_timeout=database.pool_timeout,
    )


def get_session_factory() -> sessionmaker[Session]:
    """Session factory for callers that need one session per thread."""
    if _session_factory is None:
        raise RuntimeError("Database engine not initialized; call init_engine_from_url()")
    return _session_factory


@contextmanager
def session_scope() -> Iterator[Session]:
    """Commit on success; roll back, log and re-raise on any error.

    Usage:
        with session_scope() as session:
            BulkInvoiceOperations(session).delete_many(company_id, ids, admin_id)
    """
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def dispose_engine() -> None:
    """Release pooled connections and forget the engine."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


atexit.register(dispose_engine)
