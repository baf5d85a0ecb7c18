from __future__ import annotations

from typing import Any, Optional, Sequence

from ..core.constants import DEFAULT_LEAVE_BALANCE
from ..core.enums import AmountType, EmployeeStatus, EmploymentType, LeaveStatus, LeaveType, Position
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json, to_float
from .model import Compensation, Employee, EmploymentInfo, LeaveHistoryEntry, PayComponent, PersonalInfo
from .repository import EmployeeRepository

_COLUMNS = """
    employee_id, employee_code, user_id, first_name, last_name, email, phone, date_of_birth,
    gender, national_id, address, position, department, branch_id, joining_date,
    employment_type, status, working_hours_per_day, overtime_rate, base_salary, currency,
    allowances, deductions, epf_employee_percentage, epf_employer_percentage, etf_percentage,
    leave_balance, created_at
"""


def components_to_json(components: Sequence[PayComponent]) -> list[dict]:
    return [
        {"name": c.name, "type": c.type.value, "amount": c.amount, "description": c.description}
        for c in components
    ]


def components_from_json(raw: Any) -> tuple[PayComponent, ...]:
    return tuple(
        PayComponent(
            name=item["name"],
            type=AmountType(item.get("type", AmountType.FIXED.value)),
            amount=float(item.get("amount", 0)),
            description=item.get("description"),
        )
        for item in load_json(raw, default=[])
    )


def _to_employee(r: dict) -> Employee:
    balance = dict(DEFAULT_LEAVE_BALANCE)
    balance.update({k: float(v) for k, v in load_json(r.get("leave_balance"), default={}).items()})
    return Employee(
        employee_id=int(r["employee_id"]),
        employee_code=r["employee_code"],
        user_id=r.get("user_id"),
        personal=PersonalInfo(
            first_name=r["first_name"],
            last_name=r["last_name"],
            email=r.get("email"),
            phone=r.get("phone"),
            date_of_birth=r.get("date_of_birth"),
            gender=r.get("gender"),
            national_id=r.get("national_id"),
            address=r.get("address"),
        ),
        employment=EmploymentInfo(
            position=Position(r["position"]),
            department=r["department"],
            joining_date=r["joining_date"],
            branch_id=r.get("branch_id"),
            employment_type=EmploymentType(r["employment_type"]),
            status=EmployeeStatus(r["status"]),
            working_hours_per_day=to_float(r.get("working_hours_per_day"), 8.0),
            overtime_rate=to_float(r.get("overtime_rate"), 1.5),
        ),
        compensation=Compensation(
            base_salary=to_float(r.get("base_salary")),
            currency=r.get("currency") or "LKR",
            allowances=components_from_json(r.get("allowances")),
            deductions=components_from_json(r.get("deductions")),
            epf_employee_percentage=to_float(r.get("epf_employee_percentage"), 8.0),
            epf_employer_percentage=to_float(r.get("epf_employer_percentage"), 12.0),
            etf_percentage=to_float(r.get("etf_percentage"), 3.0),
        ),
        leave_balance=balance,
        created_at=r.get("created_at"),
    )


def _values(e: Employee) -> tuple:
    p, m, c = e.personal, e.employment, e.compensation
    return (
        e.employee_code,
        e.user_id,
        p.first_name,
        p.last_name,
        p.email,
        p.phone,
        p.date_of_birth,
        p.gender,
        p.national_id,
        p.address,
        m.position.value,
        m.department,
        m.branch_id,
        m.joining_date,
        m.employment_type.value,
        m.status.value,
        m.working_hours_per_day,
        m.overtime_rate,
        c.base_salary,
        c.currency,
        dump_json(components_to_json(c.allowances)),
        dump_json(components_to_json(c.deductions)),
        c.epf_employee_percentage,
        c.epf_employer_percentage,
        c.etf_percentage,
        dump_json(e.leave_balance),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, params: tuple) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE {where}", params)
            r = fetchone(cur)
            return _to_employee(r) if r else None

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        return self._get_one("employee_id=%s", (employee_id,))

    def get_by_code(self, employee_code: str) -> Optional[Employee]:
        return self._get_one("employee_code=%s", (employee_code,))

    def list(
        self,
        *,
        status: Optional[EmployeeStatus] = None,
        department: Optional[str] = None,
        branch_id: Optional[int] = None,
        position: Optional[Position] = None,
        search: Optional[str] = None,
    ) -> Sequence[Employee]:
        where = ["1=1"]
        params: list = []
        if status is not None:
            where.append("status=%s")
            params.append(status.value)
        if department:
            where.append("department=%s")
            params.append(department)
        if branch_id is not None:
            where.append("branch_id=%s")
            params.append(int(branch_id))
        if position is not None:
            where.append("position=%s")
            params.append(position.value)
        if search:
            where.append("(first_name LIKE %s OR last_name LIKE %s OR employee_code LIKE %s OR email LIKE %s)")
            like = f"%{search}%"
            params.extend([like, like, like, like])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees WHERE {' AND '.join(where)} ORDER BY first_name, last_name",
                tuple(params),
            )
            return [_to_employee(r) for r in fetchall(cur)]

    def last_code_sequence(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT MAX(CAST(SUBSTRING(employee_code, 4) AS UNSIGNED)) AS seq FROM employees"
            )
            r = fetchone(cur)
            return int(r["seq"]) if r and r.get("seq") is not None else 0

    def create(self, employee: Employee) -> int:
        with db_cursor(self._conn_factory, duplicate_message="Employee ID already exists") as (_, cur):
            cur.execute(
                """
                INSERT INTO employees(
                    employee_code, user_id, first_name, last_name, email, phone, date_of_birth,
                    gender, national_id, address, position, department, branch_id, joining_date,
                    employment_type, status, working_hours_per_day, overtime_rate, base_salary,
                    currency, allowances, deductions, epf_employee_percentage,
                    epf_employer_percentage, etf_percentage, leave_balance
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _values(employee),
            )
            return int(cur.lastrowid)

    def update(self, employee: Employee) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE employees
                SET employee_code=%s, user_id=%s, first_name=%s, last_name=%s, email=%s, phone=%s,
                    date_of_birth=%s, gender=%s, national_id=%s, address=%s, position=%s,
                    department=%s, branch_id=%s, joining_date=%s, employment_type=%s, status=%s,
                    working_hours_per_day=%s, overtime_rate=%s, base_salary=%s, currency=%s,
                    allowances=%s, deductions=%s, epf_employee_percentage=%s,
                    epf_employer_percentage=%s, etf_percentage=%s, leave_balance=%s
                WHERE employee_id=%s
                """,
                _values(employee) + (employee.employee_id,),
            )
            return cur.rowcount > 0

    def link_user(self, *, employee_id: int, user_id: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE employees SET user_id=%s WHERE employee_id=%s", (user_id, employee_id))
            return cur.rowcount > 0

    def delete(self, employee_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM employees WHERE employee_id=%s", (employee_id,))
            return cur.rowcount > 0

    def append_leave_history(self, entry: LeaveHistoryEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employee_leave_history(
                    employee_id, leave_id, leave_type, start_date, end_date, days, status,
                    actor_user_id, reason, recorded_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.employee_id,
                    entry.leave_id,
                    entry.leave_type.value,
                    entry.start_date,
                    entry.end_date,
                    entry.days,
                    entry.status.value,
                    entry.actor_user_id,
                    entry.reason,
                    entry.recorded_at,
                ),
            )
            return int(cur.lastrowid)

    def list_leave_history(self, employee_id: int) -> Sequence[LeaveHistoryEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, leave_id, leave_type, start_date, end_date, days, status,
                       actor_user_id, reason, recorded_at
                FROM employee_leave_history
                WHERE employee_id=%s
                ORDER BY recorded_at DESC
                """,
                (employee_id,),
            )
            return [
                LeaveHistoryEntry(
                    employee_id=int(r["employee_id"]),
                    leave_id=r.get("leave_id"),
                    leave_type=LeaveType(r["leave_type"]),
                    start_date=r["start_date"],
                    end_date=r["end_date"],
                    days=to_float(r["days"]),
                    status=LeaveStatus(r["status"]),
                    actor_user_id=r.get("actor_user_id"),
                    reason=r.get("reason"),
                    recorded_at=r["recorded_at"],
                )
                for r in fetchall(cur)
            ]
