from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json, to_float
from .model import APPLIES_TO_ALL, LeaveConfiguration
from .repository import LeaveConfigurationRepository

_COLUMNS = """
    config_id, name, leave_type, max_days_per_year, max_consecutive_days, carry_forward_allowed,
    max_carry_forward_days, requires_approval, minimum_notice_days, document_required,
    allow_half_day, allow_backdating, max_backdating_days, is_paid, applicable_positions,
    applicable_employment_types, is_active
"""


def _to_config(r: dict) -> LeaveConfiguration:
    return LeaveConfiguration(
        config_id=int(r["config_id"]),
        name=r["name"],
        leave_type=LeaveType(r["leave_type"]),
        max_days_per_year=to_float(r["max_days_per_year"]),
        max_consecutive_days=to_float(r["max_consecutive_days"]) if r.get("max_consecutive_days") is not None else None,
        carry_forward_allowed=bool(r.get("carry_forward_allowed")),
        max_carry_forward_days=to_float(r.get("max_carry_forward_days")),
        requires_approval=bool(r.get("requires_approval", True)),
        minimum_notice_days=int(r.get("minimum_notice_days") or 0),
        document_required=bool(r.get("document_required")),
        allow_half_day=bool(r.get("allow_half_day", True)),
        allow_backdating=bool(r.get("allow_backdating")),
        max_backdating_days=int(r.get("max_backdating_days") or 0),
        is_paid=bool(r.get("is_paid", True)),
        applicable_positions=tuple(load_json(r.get("applicable_positions"), default=[APPLIES_TO_ALL])),
        applicable_employment_types=tuple(
            load_json(r.get("applicable_employment_types"), default=[APPLIES_TO_ALL])
        ),
        is_active=bool(r.get("is_active", True)),
    )


def _values(c: LeaveConfiguration) -> tuple:
    return (
        c.name,
        c.leave_type.value,
        c.max_days_per_year,
        c.max_consecutive_days,
        1 if c.carry_forward_allowed else 0,
        c.max_carry_forward_days,
        1 if c.requires_approval else 0,
        c.minimum_notice_days,
        1 if c.document_required else 0,
        1 if c.allow_half_day else 0,
        1 if c.allow_backdating else 0,
        c.max_backdating_days,
        1 if c.is_paid else 0,
        dump_json(list(c.applicable_positions)),
        dump_json(list(c.applicable_employment_types)),
        1 if c.is_active else 0,
    )


class MySQLLeaveConfigurationRepository(LeaveConfigurationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, config_id: int) -> Optional[LeaveConfiguration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_configurations WHERE config_id=%s", (config_id,))
            r = fetchone(cur)
            return _to_config(r) if r else None

    def list(self, *, active_only: bool = False, leave_type: Optional[LeaveType] = None) -> Sequence[LeaveConfiguration]:
        where = ["1=1"]
        params: list = []
        if active_only:
            where.append("is_active=1")
        if leave_type is not None:
            where.append("leave_type=%s")
            params.append(leave_type.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_configurations WHERE {' AND '.join(where)} ORDER BY leave_type, name",
                tuple(params),
            )
            return [_to_config(r) for r in fetchall(cur)]

    def create(self, config: LeaveConfiguration) -> int:
        with db_cursor(self._conn_factory, duplicate_message="Leave configuration already exists") as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_configurations(
                    name, leave_type, max_days_per_year, max_consecutive_days,
                    carry_forward_allowed, max_carry_forward_days, requires_approval,
                    minimum_notice_days, document_required, allow_half_day, allow_backdating,
                    max_backdating_days, is_paid, applicable_positions,
                    applicable_employment_types, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _values(config),
            )
            return int(cur.lastrowid)

    def update(self, config: LeaveConfiguration) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_configurations
                SET name=%s, leave_type=%s, max_days_per_year=%s, max_consecutive_days=%s,
                    carry_forward_allowed=%s, max_carry_forward_days=%s, requires_approval=%s,
                    minimum_notice_days=%s, document_required=%s, allow_half_day=%s,
                    allow_backdating=%s, max_backdating_days=%s, is_paid=%s,
                    applicable_positions=%s, applicable_employment_types=%s, is_active=%s
                WHERE config_id=%s
                """,
                _values(config) + (config.config_id,),
            )
            return cur.rowcount > 0
