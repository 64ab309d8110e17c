"""
LifeLink — PostgreSQL/PostGIS Connection Pool

Holds one psycopg2 ThreadedConnectionPool for the process.  The pool only
comes up when the server can reach the database, PostGIS is installed and
every located table exists; otherwise the API keeps serving the JSON seed
records (read-only) and write endpoints answer 503.

Usage:
    from . import db
    from .db import extras

    if db.init_pool():
        with db.get_conn() as conn:
            with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                cur.execute("SELECT count(*) AS n FROM blood_camps")
"""

from __future__ import annotations

import logging
import os

from psycopg2 import extras, pool  # noqa: F401 — extras re-exported for callers

logger = logging.getLogger(__name__)

DB_CONFIG = {
    "host": os.environ.get("LIFELINK_DB_HOST", "localhost"),
    "port": int(os.environ.get("LIFELINK_DB_PORT", "5432")),
    "dbname": os.environ.get("LIFELINK_DB_NAME", "lifelink"),
    "user": os.environ.get("LIFELINK_DB_USER", "lifelink"),
    "password": os.environ.get("LIFELINK_DB_PASSWORD", "lifelink_local_dev"),
    "application_name": "lifelink-geo",
}

POOL_MIN = int(os.environ.get("LIFELINK_DB_POOL_MIN", "2"))
POOL_MAX = int(os.environ.get("LIFELINK_DB_POOL_MAX", "10"))

# Tables the proximity queries read; all must exist for database mode
LOCATED_TABLES = ("hospitals", "blood_camps", "civic_alerts", "community_posts")

_pool: pool.ThreadedConnectionPool | None = None


def _probe(conn) -> dict[str, int]:
    """Check PostGIS and the located tables; returns row counts per table."""
    with conn.cursor() as cur:
        cur.execute("SELECT postgis_version()")
        postgis = cur.fetchone()[0]
        counts = {}
        for table in LOCATED_TABLES:
            cur.execute(f"SELECT count(*) FROM {table}")
            counts[table] = cur.fetchone()[0]
    conn.rollback()
    logger.debug("PostGIS %s", postgis)
    return counts


def init_pool(minconn: int | None = None, maxconn: int | None = None) -> bool:
    """
    Open the pool and probe the schema.

    Returns False (leaving no pool behind) when anything fails, so the
    caller can switch to JSON fallback mode.
    """
    global _pool
    try:
        _pool = pool.ThreadedConnectionPool(minconn or POOL_MIN, maxconn or POOL_MAX, **DB_CONFIG)
        conn = _pool.getconn()
        try:
            counts = _probe(conn)
        finally:
            _pool.putconn(conn)
    except Exception as e:
        logger.warning("Database unavailable, serving JSON seed data: %s", e)
        if _pool is not None:
            try:
                _pool.closeall()
            except Exception:
                logger.debug("Error closing half-open pool", exc_info=True)
        _pool = None
        return False

    logger.info(
        "Database pool ready (%s@%s:%s/%s): %s",
        DB_CONFIG["user"],
        DB_CONFIG["host"],
        DB_CONFIG["port"],
        DB_CONFIG["dbname"],
        ", ".join(f"{t}={n}" for t, n in counts.items()),
    )
    return True


def close_pool() -> None:
    """Release every pooled connection (app shutdown)."""
    global _pool
    if _pool is None:
        return
    _pool.closeall()
    _pool = None
    logger.info("Database pool closed")


def is_available() -> bool:
    """True while the server runs in database mode."""
    return _pool is not None


class get_conn:
    """
    Borrow a pooled connection for one unit of work.

    The work is committed when the block exits cleanly and rolled back when
    it raises; the connection always goes back to the pool.
    """

    def __enter__(self):
        if _pool is None:
            raise RuntimeError("Database pool not initialized")
        self._pool = _pool
        self.conn = self._pool.getconn()
        return self.conn

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self.conn.commit()
            else:
                self.conn.rollback()
        finally:
            self._pool.putconn(self.conn)
        return False
