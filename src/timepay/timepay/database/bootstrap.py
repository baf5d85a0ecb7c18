"""Schema, seed data and the default administrator, applied straight through mysql-connector."""

from __future__ import annotations

import json
import logging
import re
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Iterator

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.constants import DEFAULT_LEAVE_BALANCE
from ..core.enums import Position, Role
from ..employees.service import format_employee_code
from .connection import DBConfig

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("schema.sql")
SEED_PATH = Path(__file__).with_name("seed.sql")

# quoted literals are kept whole so a ';' inside them never ends a statement
_SQL_TOKEN = re.compile(r"""('(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*"|;)""", re.S)
_SCRIPT_NOISE = re.compile(r"(?im)^\s*(?:--.*|CREATE\s+DATABASE\b.*?;|USE\b.*?;)\s*$")


@contextmanager
def _server(db_config: dict, *, with_database: bool = True) -> Iterator:
    cfg = DBConfig.from_dict(db_config)
    kwargs = {"host": cfg.host, "port": cfg.port, "user": cfg.user, "password": cfg.password, "use_pure": True}
    if with_database:
        kwargs["database"] = cfg.database
    conn = mysql.connector.connect(**kwargs)
    try:
        yield conn
    finally:
        conn.close()


def split_statements(sql: str) -> Iterator[str]:
    """Yield the statements of a script. The target database comes from DB_CONFIG, so
    ``CREATE DATABASE``/``USE`` lines and ``--`` comments are dropped first."""

    buf: list[str] = []
    for token in _SQL_TOKEN.split(_SCRIPT_NOISE.sub("", sql)):
        if token != ";":
            buf.append(token)
            continue
        stmt = "".join(buf).strip()
        buf = []
        if stmt:
            yield stmt
    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_script(db_config: dict, path: str | Path) -> int:
    statements = list(split_statements(Path(path).read_text(encoding="utf-8")))
    with _server(db_config) as conn:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    return len(statements)


def ensure_database_exists(db_config: dict) -> None:
    name = DBConfig.from_dict(db_config).database
    with _server(db_config, with_database=False) as conn:
        conn.cursor().execute(
            f"CREATE DATABASE IF NOT EXISTS `{name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()


def apply_schema(db_config: dict, *, schema_path: str | Path = SCHEMA_PATH) -> None:
    ensure_database_exists(db_config)
    count = _run_script(db_config, schema_path)
    logger.info("schema applied (%d statements)", count)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path = SEED_PATH) -> None:
    count = _run_script(db_config, seed_path)
    logger.info("seed applied (%d statements)", count)


def ensure_default_accounts(db_config: dict, *, admin_email: str, admin_password: str) -> None:
    """Create (or reset) the administrator login and its employee profile.

    The employee row is needed because attendance, leave and notifications are keyed by
    employee, not by account.
    """

    with _server(db_config) as conn:
        cur = conn.cursor(dictionary=True)

        cur.execute("SELECT branch_id FROM branches WHERE code=%s", ("HQ",))
        branch = cur.fetchone()
        branch_id = int(branch["branch_id"]) if branch else None

        cur.execute("SELECT employee_id FROM employees WHERE email=%s", (admin_email,))
        row = cur.fetchone()
        if row:
            employee_id = int(row["employee_id"])
        else:
            cur.execute("SELECT MAX(CAST(SUBSTRING(employee_code, 4) AS UNSIGNED)) AS seq FROM employees")
            seq = (cur.fetchone() or {}).get("seq") or 0
            cur.execute(
                """
                INSERT INTO employees(
                    employee_code, first_name, last_name, email, position, department,
                    branch_id, joining_date, leave_balance
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    format_employee_code(int(seq) + 1),
                    "System",
                    "Administrator",
                    admin_email,
                    Position.ADMIN.value,
                    "Administration",
                    branch_id,
                    date.today(),
                    json.dumps(DEFAULT_LEAVE_BALANCE),
                ),
            )
            employee_id = int(cur.lastrowid)

        password_hash = generate_password_hash(admin_password)
        cur.execute("SELECT user_id FROM users WHERE email=%s", (admin_email,))
        existing = cur.fetchone()
        if existing:
            user_id = int(existing["user_id"])
            cur.execute(
                "UPDATE users SET password_hash=%s, role=%s, employee_id=%s, is_active=1 WHERE user_id=%s",
                (password_hash, Role.ADMIN.value, employee_id, user_id),
            )
        else:
            cur.execute(
                "INSERT INTO users(email, password_hash, role, employee_id) VALUES(%s,%s,%s,%s)",
                (admin_email, password_hash, Role.ADMIN.value, employee_id),
            )
            user_id = int(cur.lastrowid)

        cur.execute("UPDATE employees SET user_id=%s WHERE employee_id=%s", (user_id, employee_id))
        conn.commit()
        logger.info("default admin account ready (%s)", admin_email)


def list_tables(db_config: dict) -> list[str]:
    with _server(db_config) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
