# base.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
import os
import threading

# Module-level cache for engines and sessionmakers (singleton pattern)
# Keyed by database URI so tests can point at their own database
_engines = {}
_sessionmakers = {}
_engines_lock = threading.Lock()


def get_database_uri():
    """
    Database URI from SLEEPLOG_DATABASE_URI, defaulting to a SQLite file in the project root.
    """
    uri = os.environ.get('SLEEPLOG_DATABASE_URI')
    if uri:
        if uri.startswith("postgres://"):
            uri = uri.replace("postgres://", "postgresql://", 1)
        return uri

    db_path = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), 'sleeplog.db')
    # Convert to forward slashes for SQLite URI (required on all platforms)
    db_path = db_path.replace('\\', '/')
    return f'sqlite:///{db_path}'


def _create_engine(database_uri):
    if database_uri in ('sqlite://', 'sqlite:///:memory:'):
        # In-memory SQLite uses a single-connection pool; pool sizing does not apply
        return create_engine(database_uri, echo=False)

    # pool_size: number of connections to maintain
    # max_overflow: additional connections that can be created on demand
    # pool_recycle: close connections after this many seconds (prevent stale connections)
    return create_engine(
        database_uri,
        echo=False,
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,
        pool_pre_ping=True
    )


def get_current_engine():
    """Get (or create) the engine for the configured database URI."""
    database_uri = get_database_uri()
    with _engines_lock:
        if database_uri not in _engines:
            _engines[database_uri] = _create_engine(database_uri)
            _sessionmakers[database_uri] = sessionmaker(bind=_engines[database_uri])
        return _engines[database_uri]


def get_session():
    """
    Single source of truth for database sessions.

    Thread Safety:
    - The engine and its connection pool are shared across all threads
    - Each call creates a NEW session - sessions are NOT thread-safe
    - Each thread must use its own session instance
    """
    database_uri = get_database_uri()

    with _engines_lock:
        if database_uri not in _engines:
            _engines[database_uri] = _create_engine(database_uri)
            _sessionmakers[database_uri] = sessionmaker(bind=_engines[database_uri])
        session_maker = _sessionmakers[database_uri]

    return session_maker()


def dispose_engines():
    """Close every pooled connection and forget cached engines."""
    with _engines_lock:
        for engine in _engines.values():
            engine.dispose()
        _engines.clear()
        _sessionmakers.clear()


# Base declarative base (this is safe to create at import time)
Base = declarative_base()
