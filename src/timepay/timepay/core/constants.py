"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

from .enums import LeaveType, Role

DEFAULT_OPENING_TIME = time(9, 0)
DEFAULT_CLOSING_TIME = time(18, 0)
DEFAULT_WORKING_DAYS = ("monday", "tuesday", "wednesday", "thursday", "friday")

DEFAULT_STANDARD_WORK_HOURS = 8.0
DEFAULT_OVERTIME_RATE = 1.5
DEFAULT_BREAK_MINUTES = 60

DEFAULT_CURRENCY = "LKR"
EPF_EMPLOYEE_PERCENTAGE = 8.0
EPF_EMPLOYER_PERCENTAGE = 12.0
ETF_PERCENTAGE = 3.0

EMPLOYEE_CODE_PREFIX = "EMP"
EMPLOYEE_CODE_DIGITS = 5

DEFAULT_LEAVE_BALANCE = {
    LeaveType.ANNUAL.value: 21.0,
    LeaveType.SICK.value: 10.0,
    LeaveType.CASUAL.value: 7.0,
    LeaveType.PERSONAL.value: 5.0,
    LeaveType.MATERNITY.value: 90.0,
    LeaveType.PATERNITY.value: 15.0,
    LeaveType.UNPAID.value: 0.0,
    LeaveType.EMERGENCY.value: 0.0,
}

# Users holding one of these roles are told about new leave requests.
LEAVE_APPROVER_ROLES = (
    Role.ADMIN,
    Role.OWNER,
    Role.HR_MANAGER,
    Role.BRANCH_MANAGER,
    Role.SUPERVISOR,
)

DEFAULT_NOTIFICATION_LIMIT = 20
DEFAULT_TOKEN_DAYS = 7
PASSWORD_RESET_MINUTES = 10
MIN_PASSWORD_LENGTH = 6
