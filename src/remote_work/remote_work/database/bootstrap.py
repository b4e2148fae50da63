from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

from werkzeug.security import generate_password_hash

from .connection import DBConfig, DatabaseConnection

logger = logging.getLogger(__name__)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql usable regardless of the configured DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ';' outside quotes, skipping '--' comment lines."""
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    lines = [ln for ln in sql.splitlines() if not ln.lstrip().startswith("--")]
    for ch in "\n".join(lines):
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_script(conn_factory: DatabaseConnection, sql: str) -> int:
    conn = conn_factory.connect()
    count = 0
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(_strip_create_db_and_use(sql)):
            cur.execute(stmt)
            count += 1
        conn.commit()
    finally:
        conn.close()
    return count


def ensure_database_exists(db_config: dict) -> None:
    factory = DatabaseConnection(DBConfig.from_dict(db_config))
    conn = factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{factory.config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    factory = DatabaseConnection(DBConfig.from_dict(db_config))
    n = _run_script(factory, Path(schema_path).read_text(encoding="utf-8"))
    logger.info("Applied schema %s (%d statements)", schema_path, n)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    factory = DatabaseConnection(DBConfig.from_dict(db_config))
    n = _run_script(factory, Path(seed_path).read_text(encoding="utf-8"))
    logger.info("Applied seed %s (%d statements)", seed_path, n)


DEMO_USERS = (
    # name, email, employee_number, password, role, department
    ("Admin Demo", "admin@example.com", "A0001", "admin1234", "admin", "総務部"),
    ("Approver Demo", "approver@example.com", "M0001", "approver1234", "approver", "開発部"),
    ("Applicant Demo", "applicant@example.com", "E0001", "applicant1234", "applicant", "開発部"),
)


def ensure_demo_users(db_config: dict) -> None:
    """Upsert the demo accounts; the applicant reports to the demo approver."""
    factory = DatabaseConnection(DBConfig.from_dict(db_config))
    conn = factory.connect()
    try:
        cur = conn.cursor(dictionary=True)

        def department_id(name: str) -> int:
            cur.execute("SELECT department_id FROM departments WHERE name=%s", (name,))
            row = cur.fetchone()
            if not row:
                raise RuntimeError(f"Missing departments row for name={name}")
            return int(row["department_id"])

        ids: dict[str, int] = {}
        for name, email, number, password, role, dept in DEMO_USERS:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT user_id FROM users WHERE email=%s", (email,))
            existing = cur.fetchone()
            if existing:
                cur.execute(
                    """
                    UPDATE users
                    SET name=%s, employee_number=%s, password_hash=%s, role=%s, department_id=%s, is_active=1
                    WHERE email=%s
                    """,
                    (name, number, password_hash, role, department_id(dept), email),
                )
                ids[role] = int(existing["user_id"])
            else:
                cur.execute(
                    """
                    INSERT INTO users (name, email, employee_number, password_hash, role, department_id)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    """,
                    (name, email, number, password_hash, role, department_id(dept)),
                )
                ids[role] = int(cur.lastrowid)

        cur.execute("UPDATE users SET manager_id=%s WHERE user_id=%s", (ids["approver"], ids["applicant"]))
        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    factory = DatabaseConnection(DBConfig.from_dict(db_config))
    conn = factory.connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
