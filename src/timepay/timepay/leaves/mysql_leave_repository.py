from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence

from ..core.enums import HalfDayPeriod, LeavePriority, LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, to_float
from .model import LeaveRequest
from .repository import LeaveRepository

_COLUMNS = """
    leave_id, employee_id, leave_type, start_date, end_date, number_of_days, reason, status,
    is_half_day, half_day_period, priority, approved_by, approval_date, approval_comments,
    rejected_by, rejection_date, rejection_reason, cancelled_at, created_at
"""


def _to_leave(r: dict) -> LeaveRequest:
    return LeaveRequest(
        leave_id=int(r["leave_id"]),
        employee_id=int(r["employee_id"]),
        leave_type=LeaveType(r["leave_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        number_of_days=to_float(r["number_of_days"]),
        reason=r.get("reason") or "",
        status=LeaveStatus(r["status"]),
        is_half_day=bool(r.get("is_half_day", False)),
        half_day_period=HalfDayPeriod(r["half_day_period"]) if r.get("half_day_period") else None,
        priority=LeavePriority(r.get("priority") or LeavePriority.MEDIUM.value),
        approved_by=r.get("approved_by"),
        approval_date=r.get("approval_date"),
        approval_comments=r.get("approval_comments"),
        rejected_by=r.get("rejected_by"),
        rejection_date=r.get("rejection_date"),
        rejection_reason=r.get("rejection_reason"),
        cancelled_at=r.get("cancelled_at"),
        created_at=r.get("created_at"),
    )


def _values(leave: LeaveRequest) -> tuple:
    return (
        leave.employee_id,
        leave.leave_type.value,
        leave.start_date,
        leave.end_date,
        leave.number_of_days,
        leave.reason,
        leave.status.value,
        1 if leave.is_half_day else 0,
        leave.half_day_period.value if leave.half_day_period else None,
        leave.priority.value,
        leave.approved_by,
        leave.approval_date,
        leave.approval_comments,
        leave.rejected_by,
        leave.rejection_date,
        leave.rejection_reason,
        leave.cancelled_at,
        leave.created_at,
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests WHERE leave_id=%s", (leave_id,))
            r = fetchone(cur)
            return _to_leave(r) if r else None

    def create(self, leave: LeaveRequest) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    employee_id, leave_type, start_date, end_date, number_of_days, reason, status,
                    is_half_day, half_day_period, priority, approved_by, approval_date,
                    approval_comments, rejected_by, rejection_date, rejection_reason,
                    cancelled_at, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _values(leave),
            )
            return int(cur.lastrowid)

    def update(self, leave: LeaveRequest) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET employee_id=%s, leave_type=%s, start_date=%s, end_date=%s, number_of_days=%s,
                    reason=%s, status=%s, is_half_day=%s, half_day_period=%s, priority=%s,
                    approved_by=%s, approval_date=%s, approval_comments=%s, rejected_by=%s,
                    rejection_date=%s, rejection_reason=%s, cancelled_at=%s, created_at=%s
                WHERE leave_id=%s
                """,
                _values(leave) + (leave.leave_id,),
            )
            return cur.rowcount > 0

    def list_leaves(
        self,
        *,
        employee_ids: Optional[Iterable[int]] = None,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
        start_from: Optional[date] = None,
        start_to: Optional[date] = None,
    ) -> Sequence[LeaveRequest]:
        where = ["1=1"]
        params: list = []
        if employee_ids is not None:
            ids = [int(i) for i in employee_ids]
            if not ids:
                return []
            where.append(f"employee_id IN ({in_clause(ids)})")
            params.extend(ids)
        if status is not None:
            where.append("status=%s")
            params.append(status.value)
        if leave_type is not None:
            where.append("leave_type=%s")
            params.append(leave_type.value)
        if start_from is not None:
            where.append("start_date >= %s")
            params.append(start_from)
        if start_to is not None:
            where.append("start_date <= %s")
            params.append(start_to)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_requests WHERE {' AND '.join(where)} ORDER BY created_at DESC, leave_id DESC",
                tuple(params),
            )
            return [_to_leave(r) for r in fetchall(cur)]
