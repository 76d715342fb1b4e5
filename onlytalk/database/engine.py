"""
onlytalk.database.engine — Database Connection & Session Helper
================================================================

One engine per process, built from ``DATABASE_URL``.  Every service
operation opens a :class:`~sqlalchemy.orm.Session`, does its whole
read-check-write sequence inside it and commits once, so a failure at any
step rolls back everything that step's caller had written.

SQLite (the default single-file store) has no row locks, so the engine is
configured to open every transaction with ``BEGIN IMMEDIATE``.  That takes
the database write lock up front and serializes concurrent balance
mutations the same way ``SELECT ... FOR UPDATE`` does on PostgreSQL.

Usage::

    from onlytalk.database.engine import create_db_engine, init_db, get_session

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS … + seed

    with get_session(engine) as session:
        session.add(Category(name="General"))
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session

from onlytalk.database.models import Base

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine(url: str | None = None) -> Engine:
    """Build a SQLAlchemy :class:`Engine` from *url* or ``DATABASE_URL``.

    Server databases get a small connection pool:
    * ``pool_size=5`` — five persistent connections.
    * ``max_overflow=10`` — up to 10 extra connections under load.
    * ``pool_timeout=10`` — fail after 10 s if no connection is available.
    * ``pool_recycle=3600`` — recycle connections after 1 hour.

    SQLite URLs skip pool tuning and get :func:`configure_sqlite` instead.

    Raises
    ------
    RuntimeError
        If no URL is given and ``DATABASE_URL`` is not set.
    """
    url = url or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and set a valid database URL."
        )

    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
        )
        configure_sqlite(engine)
    else:
        engine = create_engine(
            url,
            echo=False,        # Set True for SQL debugging
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,   # Reconnect stale connections automatically
            pool_timeout=10,
            pool_recycle=3600,
        )
    logger.info("Database engine created → %s", engine.url.render_as_string(hide_password=True))
    return engine


def configure_sqlite(engine: Engine) -> None:
    """Enable foreign keys and ``BEGIN IMMEDIATE`` transactions on SQLite.

    pysqlite's own transaction handling is switched off so SQLAlchemy
    controls ``BEGIN``; see the SQLAlchemy SQLite dialect docs,
    "Serializable isolation / Savepoints / Transactional DDL".
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create all tables defined in :mod:`onlytalk.database.models`.

    Safe to call on every startup — ``CREATE TABLE IF NOT EXISTS`` under the
    hood.  After creating tables, seeds the default categories and the shop
    catalogue.  Seeding is idempotent.

    .. note::

        In production the schema is managed by Alembic (``alembic upgrade
        head``).  ``create_all`` is retained for dev/test environments where
        Alembic may not have run.  No table is ever created lazily by
        request traffic.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")

    from onlytalk.database.seed import seed_defaults

    seed_defaults(engine)


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine):
    """Yield a :class:`Session` that auto-commits on success and rolls back
    on exception.

    Objects stay loaded after the commit (``expire_on_commit=False``) so
    services can build return values from them after the block exits.

    Usage::

        with get_session(engine) as session:
            session.add(Category(name="General"))
            # commit happens automatically on block exit
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
