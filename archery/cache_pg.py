import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import psycopg2
from psycopg2 import pool as pg_pool
from psycopg2 import errors as pg_errors
from contextlib import contextmanager

from .config import env_int


_POOL: Optional[pg_pool.AbstractConnectionPool] = None

CACHE_TABLE = "api_cache"

_SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS {CACHE_TABLE} (
    cache_key TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    expires_at TIMESTAMPTZ NOT NULL
)
"""


def _connect_kwargs() -> Dict[str, Any]:
    """Common connection kwargs: connect_timeout + TCP keepalives.

    Defaults:
      - connect_timeout: 10 seconds (overridable via DB_CONNECT_TIMEOUT)
      - keepalives: enabled by default; can be disabled by DB_KEEPALIVES=0
      - keepalive tunables applied if provided (IDLE/INTERVAL/COUNT)
    """
    kwargs: Dict[str, Any] = {}
    ct_env = env_int("DB_CONNECT_TIMEOUT")
    kwargs["connect_timeout"] = ct_env if ct_env is not None else 10

    ka_env = os.environ.get("DB_KEEPALIVES")
    if ka_env is None:
        kwargs["keepalives"] = 1
    else:
        kwargs["keepalives"] = 0 if str(ka_env).lower() in ("0", "false") else 1

    for env_name, kw in (
        ("DB_KEEPALIVES_IDLE", "keepalives_idle"),
        ("DB_KEEPALIVES_INTERVAL", "keepalives_interval"),
        ("DB_KEEPALIVES_COUNT", "keepalives_count"),
    ):
        val = env_int(env_name)
        if val is not None:
            kwargs[kw] = val
    return kwargs


def init_pool(minconn: int = 1, maxconn: int = 10) -> None:
    """Initialize a global connection pool using DATABASE_URL.

    Safe to call multiple times; subsequent calls are ignored once a pool exists.
    """
    global _POOL
    if _POOL is not None:
        return
    url = os.environ.get("DATABASE_URL")
    if not url:
        # Leave _POOL as None; callers will fall back to direct connections
        return
    _POOL = pg_pool.ThreadedConnectionPool(minconn, maxconn, dsn=url, **_connect_kwargs())


def _ping(conn) -> bool:
    try:
        with conn.cursor() as cur:
            cur.execute("SELECT 1")
        if not getattr(conn, "autocommit", False):
            conn.rollback()
    except (psycopg2.OperationalError, psycopg2.InterfaceError):
        return False
    return True


@contextmanager
def _get_conn():
    """Yield a database connection from the pool if available, else direct.

    Pooled connections are pinged before use; a dead one is discarded and
    checkout is retried once.
    """
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL not set; configure a PostgreSQL connection string")
    if _POOL is None:
        conn = psycopg2.connect(url, **_connect_kwargs())
        try:
            try:
                yield conn
            except Exception:
                conn.rollback()
                raise
        finally:
            conn.close()
        return

    conn = _POOL.getconn()
    if not _ping(conn):
        _POOL.putconn(conn, close=True)
        conn = _POOL.getconn()
        if not _ping(conn):
            _POOL.putconn(conn, close=True)
            raise psycopg2.OperationalError("Failed to acquire healthy DB connection after retry")
    try:
        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
    finally:
        _POOL.putconn(conn)


class PgCache:
    """TTL cache stored in a PostgreSQL table.

    Same interface as :class:`archery.cache.MemoryCache`. Expired rows are
    ignored on read and removed on the next write of the same key or by
    :meth:`purge_expired`.
    """

    backend = "postgres"

    def ensure_schema(self) -> None:
        with _get_conn() as conn, conn.cursor() as cur:
            cur.execute(_SCHEMA_SQL)
            conn.commit()

    def get(self, key: str) -> Optional[str]:
        with _get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                f"SELECT payload FROM {CACHE_TABLE} WHERE cache_key = %s AND expires_at > now()",
                (key,),
            )
            row = cur.fetchone()
        return row[0] if row else None

    def setex(self, key: str, ttl: int, value: str) -> None:
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(ttl))
        with _get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                f"""
                INSERT INTO {CACHE_TABLE} (cache_key, payload, expires_at)
                VALUES (%s, %s, %s)
                ON CONFLICT (cache_key) DO UPDATE SET
                    payload = EXCLUDED.payload,
                    expires_at = EXCLUDED.expires_at
                """,
                (key, value, expires_at),
            )
            conn.commit()

    def delete(self, key: str) -> None:
        with _get_conn() as conn, conn.cursor() as cur:
            cur.execute(f"DELETE FROM {CACHE_TABLE} WHERE cache_key = %s", (key,))
            conn.commit()

    def flush(self) -> int:
        with _get_conn() as conn, conn.cursor() as cur:
            try:
                cur.execute(f"DELETE FROM {CACHE_TABLE}")
            except pg_errors.UndefinedTable:
                conn.rollback()
                return 0
            count = cur.rowcount
            conn.commit()
        return count

    def purge_expired(self) -> int:
        with _get_conn() as conn, conn.cursor() as cur:
            cur.execute(f"DELETE FROM {CACHE_TABLE} WHERE expires_at <= now()")
            count = cur.rowcount
            conn.commit()
        return count

    def describe(self) -> Dict[str, Any]:
        try:
            with _get_conn() as conn, conn.cursor() as cur:
                cur.execute(f"SELECT count(*) FROM {CACHE_TABLE} WHERE expires_at > now()")
                (entries,) = cur.fetchone()
            return {"backend": self.backend, "status": "ok", "entries": int(entries)}
        except Exception as e:  # pragma: no cover - best-effort health output
            return {"backend": self.backend, "status": "error", "error": str(e)}


__all__ = ["CACHE_TABLE", "PgCache", "init_pool"]
