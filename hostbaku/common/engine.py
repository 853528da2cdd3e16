"""
Database engine and session factory.
Handles connection pooling and per-statement timeouts.
"""

import logging
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker


logger = logging.getLogger(__name__)

DEFAULT_POOL_SIZE = 5
DEFAULT_MAX_OVERFLOW = 10
DEFAULT_POOL_TIMEOUT = 30
DEFAULT_POOL_RECYCLE = 1800


def create_db_engine(db_url: str, db_settings=None) -> Engine:
    """
    Create SQLAlchemy engine from a URL and the optional database config section.

    PostgreSQL connections get a server-side statement_timeout so a stuck
    query aborts instead of holding the request. SQLite (tests, local dev)
    runs without pool tuning.

    Args:
        db_url: SQLAlchemy connection URL
        db_settings: ConfigSection with pool_size, max_overflow, pool_timeout,
                     pool_recycle, statement_timeout_ms (all optional)

    Returns:
        Engine: SQLAlchemy engine
    """
    settings = db_settings.to_dict() if db_settings is not None else {}

    if db_url.startswith('sqlite'):
        engine = create_engine(db_url)
        logger.debug("SQLite engine created")
        return engine

    connect_args = {}
    timeout_ms = settings.get('statement_timeout_ms')
    if timeout_ms and db_url.startswith('postgresql'):
        connect_args['options'] = f"-c statement_timeout={int(timeout_ms)}"

    engine = create_engine(
        db_url,
        pool_size=settings.get('pool_size', DEFAULT_POOL_SIZE),
        max_overflow=settings.get('max_overflow', DEFAULT_MAX_OVERFLOW),
        pool_timeout=settings.get('pool_timeout', DEFAULT_POOL_TIMEOUT),
        pool_recycle=settings.get('pool_recycle', DEFAULT_POOL_RECYCLE),
        pool_pre_ping=True,
        connect_args=connect_args,
    )
    logger.info(f"SQLAlchemy engine created: {engine.url.get_backend_name()} (host={engine.url.host})")
    return engine


def create_session_factory(engine: Engine):
    """Session factory bound to the engine; one session per request."""
    return sessionmaker(bind=engine)


def get_pool_stats(engine: Engine) -> dict:
    """
    Get connection pool statistics for the health check.

    Returns:
        dict: Pool statistics, empty for pools without sizing (SQLite)
    """
    pool = engine.pool
    if not hasattr(pool, 'checkedout'):
        return {}
    return {
        'pool_size': pool.size(),
        'checked_in': pool.checkedin(),
        'checked_out': pool.checkedout(),
        'overflow': pool.overflow(),
    }
