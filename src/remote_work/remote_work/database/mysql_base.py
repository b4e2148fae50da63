"""Cursor and value helpers shared by the MySQL repositories."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True) -> Iterator[Tuple[Any, Any]]:
    """One connection and one transaction per block.

    Everything executed inside the block commits together; any exception
    rolls all of it back and propagates.
    """
    conn = conn_factory.connect()
    cur = None
    try:
        cur = conn.cursor(dictionary=dictionary)
        yield conn, cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        if cur is not None:
            cur.close()
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Dict[str, Any]]:
    return list(cur.fetchall() or [])


def fetch_count(cur, column: str = "n") -> int:
    """Read a single `COUNT(*) AS n` style result; no row counts as 0."""
    row = cur.fetchone()
    if not row or row.get(column) is None:
        return 0
    return int(row[column])


def build_where(clauses: Sequence[str]) -> str:
    return " AND ".join(["1=1", *clauses])


def placeholders(n: int) -> str:
    return ",".join(["%s"] * n)


def normalize_mysql_time(value: Any) -> Optional[time]:
    """TIME columns come back as timedelta from mysql-connector, sometimes as text."""
    if value is None or isinstance(value, time):
        return value

    if isinstance(value, timedelta):
        minutes, seconds = divmod(int(value.total_seconds()) % 86400, 60)
        hours, minutes = divmod(minutes, 60)
        return time(hours, minutes, seconds)

    if isinstance(value, (bytes, str)):
        text = value.decode() if isinstance(value, bytes) else value
        parts = [int(p) for p in text.strip().split(":") if p != ""]
        if len(parts) < 2:
            raise ValueError(f"Invalid time string: {value!r}")
        return time(*parts[:3])

    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")


def normalize_mysql_date(value: Any) -> Optional[date]:
    if value is None or (isinstance(value, date) and not isinstance(value, datetime)):
        return value
    if isinstance(value, datetime):
        return value.date()
    # DATE/DATETIME as text: "YYYY-MM-DD[ HH:MM:SS]"
    return date.fromisoformat(str(value)[:10])
