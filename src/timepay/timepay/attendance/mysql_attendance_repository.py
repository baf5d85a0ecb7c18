from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence

from ..core.enums import AttendanceStatus, WorkType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, to_float
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, employee_id, branch_id, work_date, status, clock_in, clock_out,
    break_minutes, total_hours, regular_hours, overtime_hours, late_minutes,
    early_leave_minutes, work_type, notes, approved_by
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        branch_id=r.get("branch_id"),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        clock_in=r.get("clock_in"),
        clock_out=r.get("clock_out"),
        break_minutes=int(r.get("break_minutes") or 0),
        total_hours=to_float(r.get("total_hours")),
        regular_hours=to_float(r.get("regular_hours")),
        overtime_hours=to_float(r.get("overtime_hours")),
        late_minutes=int(r.get("late_minutes") or 0),
        early_leave_minutes=int(r.get("early_leave_minutes") or 0),
        work_type=WorkType(r.get("work_type") or WorkType.OFFICE.value),
        notes=r.get("notes"),
        approved_by=r.get("approved_by"),
    )


def _values(rec: AttendanceRecord) -> tuple:
    return (
        rec.employee_id,
        rec.branch_id,
        rec.work_date,
        rec.status.value,
        rec.clock_in,
        rec.clock_out,
        rec.break_minutes,
        rec.total_hours,
        rec.regular_hours,
        rec.overtime_hours,
        rec.late_minutes,
        rec.early_leave_minutes,
        rec.work_type.value,
        rec.notes,
        rec.approved_by,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (attendance_id,))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE employee_id=%s AND work_date=%s",
                (employee_id, work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def create(self, record: AttendanceRecord) -> int:
        with db_cursor(self._conn_factory, duplicate_message="Attendance already marked for this date") as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(
                    employee_id, branch_id, work_date, status, clock_in, clock_out, break_minutes,
                    total_hours, regular_hours, overtime_hours, late_minutes, early_leave_minutes,
                    work_type, notes, approved_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _values(record),
            )
            return int(cur.lastrowid)

    def update(self, record: AttendanceRecord) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET employee_id=%s, branch_id=%s, work_date=%s, status=%s, clock_in=%s,
                    clock_out=%s, break_minutes=%s, total_hours=%s, regular_hours=%s,
                    overtime_hours=%s, late_minutes=%s, early_leave_minutes=%s, work_type=%s,
                    notes=%s, approved_by=%s
                WHERE attendance_id=%s
                """,
                _values(record) + (record.attendance_id,),
            )
            return cur.rowcount > 0

    def list_records(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        employee_ids: Optional[Iterable[int]] = None,
        branch_id: Optional[int] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> Sequence[AttendanceRecord]:
        where = ["1=1"]
        params: list = []
        if start_date is not None:
            where.append("work_date >= %s")
            params.append(start_date)
        if end_date is not None:
            where.append("work_date <= %s")
            params.append(end_date)
        if employee_ids is not None:
            ids = [int(i) for i in employee_ids]
            if not ids:
                return []
            where.append(f"employee_id IN ({in_clause(ids)})")
            params.extend(ids)
        if branch_id is not None:
            where.append("branch_id=%s")
            params.append(int(branch_id))
        if status is not None:
            where.append("status=%s")
            params.append(status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE {' AND '.join(where)}
                ORDER BY work_date DESC, attendance_id DESC
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]
