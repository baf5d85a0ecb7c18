from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.schedule import WorkSchedule
from .attendance.service import AttendanceService
from .branches.mysql_branch_repository import MySQLBranchRepository
from .branches.repository import BranchRepository
from .branches.service import BranchService
from .core.constants import DEFAULT_TOKEN_DAYS
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .employees.service import EmployeeService
from .leaves.mysql_leave_configuration_repository import MySQLLeaveConfigurationRepository
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.repository import LeaveConfigurationRepository, LeaveRepository
from .leaves.service import LeaveConfigurationService, LeaveService
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationService
from .payments.mysql_payment_repository import MySQLPaymentRepository
from .payments.repository import PaymentRepository
from .payments.service import PaymentService
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.repository import PayrollRepository
from .payroll.service import PayrollService
from .reports.service import ReportService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService
from .users.tokens import TokenService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    company_name: str

    users_repo: UserRepository
    employees_repo: EmployeeRepository
    branches_repo: BranchRepository
    attendance_repo: AttendanceRepository
    leaves_repo: LeaveRepository
    leave_configurations_repo: LeaveConfigurationRepository
    payrolls_repo: PayrollRepository
    payments_repo: PaymentRepository
    notifications_repo: NotificationRepository

    auth_service: AuthService
    user_service: UserService
    employee_service: EmployeeService
    branch_service: BranchService
    attendance_service: AttendanceService
    leave_service: LeaveService
    leave_configuration_service: LeaveConfigurationService
    payroll_service: PayrollService
    payment_service: PaymentService
    notification_service: NotificationService
    report_service: ReportService


def wire(
    *,
    users_repo: UserRepository,
    employees_repo: EmployeeRepository,
    branches_repo: BranchRepository,
    attendance_repo: AttendanceRepository,
    leaves_repo: LeaveRepository,
    leave_configurations_repo: LeaveConfigurationRepository,
    payrolls_repo: PayrollRepository,
    payments_repo: PaymentRepository,
    notifications_repo: NotificationRepository,
    jwt_secret: str,
    jwt_expires_days: int = DEFAULT_TOKEN_DAYS,
    default_schedule: WorkSchedule | None = None,
    company_name: str = "TimePay",
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build the services around any set of repositories (MySQL in production, in-memory in tests)."""

    notification_service = NotificationService(notifications_repo, employees_repo, users_repo)
    employee_service = EmployeeService(employees_repo, branches_repo)
    user_service = UserService(users_repo, employee_service)
    auth_service = AuthService(users_repo, user_service, TokenService(jwt_secret, expires_days=jwt_expires_days))
    branch_service = BranchService(branches_repo, employees_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        employees_repo,
        branches_repo,
        default_schedule=default_schedule,
    )
    leave_service = LeaveService(leaves_repo, leave_configurations_repo, employees_repo, notification_service)
    leave_configuration_service = LeaveConfigurationService(leave_configurations_repo)
    payroll_service = PayrollService(payrolls_repo, employees_repo, attendance_repo, notification_service)
    payment_service = PaymentService(payments_repo, payroll_service, notification_service)
    report_service = ReportService(employees_repo, attendance_service, leave_service, payroll_service)

    return Container(
        conn=conn,
        company_name=company_name,
        users_repo=users_repo,
        employees_repo=employees_repo,
        branches_repo=branches_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        leave_configurations_repo=leave_configurations_repo,
        payrolls_repo=payrolls_repo,
        payments_repo=payments_repo,
        notifications_repo=notifications_repo,
        auth_service=auth_service,
        user_service=user_service,
        employee_service=employee_service,
        branch_service=branch_service,
        attendance_service=attendance_service,
        leave_service=leave_service,
        leave_configuration_service=leave_configuration_service,
        payroll_service=payroll_service,
        payment_service=payment_service,
        notification_service=notification_service,
        report_service=report_service,
    )


def build_container(
    *,
    db_config: dict,
    jwt_secret: str,
    jwt_expires_days: int = DEFAULT_TOKEN_DAYS,
    opening_time: time | None = None,
    closing_time: time | None = None,
    company_name: str = "TimePay",
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    default_schedule = WorkSchedule()
    if opening_time is not None and closing_time is not None:
        default_schedule = WorkSchedule(start=opening_time, end=closing_time)

    return wire(
        users_repo=MySQLUserRepository(conn),
        employees_repo=MySQLEmployeeRepository(conn),
        branches_repo=MySQLBranchRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        leaves_repo=MySQLLeaveRepository(conn),
        leave_configurations_repo=MySQLLeaveConfigurationRepository(conn),
        payrolls_repo=MySQLPayrollRepository(conn),
        payments_repo=MySQLPaymentRepository(conn),
        notifications_repo=MySQLNotificationRepository(conn),
        jwt_secret=jwt_secret,
        jwt_expires_days=jwt_expires_days,
        default_schedule=default_schedule,
        company_name=company_name,
        conn=conn,
    )
