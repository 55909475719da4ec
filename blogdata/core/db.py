"""
Database connection management.

Provides the cached SQLAlchemy engine and a context manager that hands out
one connection per operation and always gives it back to the pool.
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine

from blogdata.core.config import settings

logger = logging.getLogger(__name__)

_engine: Engine | None = None


def get_engine() -> Engine:
    """
    Create and configure the SQLAlchemy engine.

    Server databases get a bounded connection pool with health checks and
    recycling. SQLite keeps SQLAlchemy's default pool for its URL type.

    Returns:
        Configured SQLAlchemy engine
    """
    global _engine

    if _engine is not None:
        return _engine

    url = settings.sync_url
    if not url:
        raise RuntimeError("DATABASE_URL is required")

    if settings.is_sqlite:
        _engine = create_engine(url, echo=settings.database_echo)
    else:
        _engine = create_engine(
            url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout,
            pool_recycle=settings.database_pool_recycle,
            pool_pre_ping=True,
            connect_args={"connect_timeout": settings.database_connect_timeout},
            echo=settings.database_echo,
        )

    logger.info(f"Created database engine for {_engine.url.render_as_string(hide_password=True)}")
    return _engine


def reset_engine() -> None:
    """Dispose the cached engine so the next call builds a fresh one."""
    global _engine

    if _engine is not None:
        _engine.dispose()
    _engine = None


@contextmanager
def get_connection(
    engine: Engine | None = None, *, transactional: bool = False
) -> Generator[Connection]:
    """
    Context manager for a single pooled connection.

    Usage:
        with get_connection(transactional=True) as conn:
            conn.execute(stmt)

    Args:
        engine: Engine to draw from (defaults to the application engine)
        transactional: Wrap the block in a transaction committed on success
            and rolled back on error

    Ensures:
        Connection is returned to the pool even if an exception occurs
    """
    conn = (engine or get_engine()).connect()
    try:
        if transactional:
            with conn.begin():
                yield conn
        else:
            yield conn
    finally:
        conn.close()
