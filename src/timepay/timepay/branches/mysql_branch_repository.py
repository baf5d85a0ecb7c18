from __future__ import annotations

from typing import Optional, Sequence

from ..core.constants import DEFAULT_CLOSING_TIME, DEFAULT_OPENING_TIME, DEFAULT_WORKING_DAYS
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json, normalize_mysql_time
from .model import Branch
from .repository import BranchRepository

_COLUMNS = """
    branch_id, name, code, address, phone, email, manager_id, departments, is_active,
    opening_time, closing_time, working_days
"""


def _to_branch(r: dict) -> Branch:
    return Branch(
        branch_id=int(r["branch_id"]),
        name=r["name"],
        code=r["code"],
        address=r.get("address"),
        phone=r.get("phone"),
        email=r.get("email"),
        manager_id=r.get("manager_id"),
        departments=tuple(load_json(r.get("departments"), default=[])),
        is_active=bool(r.get("is_active", True)),
        opening_time=normalize_mysql_time(r.get("opening_time")) or DEFAULT_OPENING_TIME,
        closing_time=normalize_mysql_time(r.get("closing_time")) or DEFAULT_CLOSING_TIME,
        working_days=tuple(load_json(r.get("working_days"), default=list(DEFAULT_WORKING_DAYS))),
    )


def _values(b: Branch) -> tuple:
    return (
        b.name,
        b.code,
        b.address,
        b.phone,
        b.email,
        b.manager_id,
        dump_json(list(b.departments)),
        1 if b.is_active else 0,
        b.opening_time,
        b.closing_time,
        dump_json(list(b.working_days)),
    )


class MySQLBranchRepository(BranchRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, branch_id: int) -> Optional[Branch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM branches WHERE branch_id=%s", (branch_id,))
            r = fetchone(cur)
            return _to_branch(r) if r else None

    def get_by_code(self, code: str) -> Optional[Branch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM branches WHERE code=%s", (code,))
            r = fetchone(cur)
            return _to_branch(r) if r else None

    def list(self, *, active_only: bool = False) -> Sequence[Branch]:
        sql = f"SELECT {_COLUMNS} FROM branches"
        if active_only:
            sql += " WHERE is_active=1"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY name")
            return [_to_branch(r) for r in fetchall(cur)]

    def create(self, branch: Branch) -> int:
        with db_cursor(self._conn_factory, duplicate_message="Branch code already exists") as (_, cur):
            cur.execute(
                """
                INSERT INTO branches(
                    name, code, address, phone, email, manager_id, departments, is_active,
                    opening_time, closing_time, working_days
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _values(branch),
            )
            return int(cur.lastrowid)

    def update(self, branch: Branch) -> bool:
        with db_cursor(self._conn_factory, duplicate_message="Branch code already exists") as (_, cur):
            cur.execute(
                """
                UPDATE branches
                SET name=%s, code=%s, address=%s, phone=%s, email=%s, manager_id=%s,
                    departments=%s, is_active=%s, opening_time=%s, closing_time=%s, working_days=%s
                WHERE branch_id=%s
                """,
                _values(branch) + (branch.branch_id,),
            )
            return cur.rowcount > 0

    def delete(self, branch_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM branches WHERE branch_id=%s", (branch_id,))
            return cur.rowcount > 0
