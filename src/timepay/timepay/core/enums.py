from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Account roles used by the capability table."""

    ADMIN = "admin"
    OWNER = "owner"
    ACCOUNTANT = "accountant"
    HR_MANAGER = "hr_manager"
    BRANCH_MANAGER = "branch_manager"
    SUPERVISOR = "supervisor"
    EMPLOYEE = "employee"


class Position(str, Enum):
    SALESMAN = "salesman"
    DRIVER = "driver"
    SUPERVISOR = "supervisor"
    CLEANER = "cleaner"
    SECURITY = "security"
    CASHIER = "cashier"
    MANAGER = "manager"
    ACCOUNTANT = "accountant"
    ADMIN = "admin"
    OTHER = "other"


class EmploymentType(str, Enum):
    FULL_TIME = "full-time"
    PART_TIME = "part-time"
    CONTRACT = "contract"
    INTERN = "intern"


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    TERMINATED = "terminated"
    ON_LEAVE = "on-leave"


class AmountType(str, Enum):
    """How an allowance or deduction amount is interpreted."""

    FIXED = "fixed"
    PERCENTAGE = "percentage"


class AttendanceStatus(str, Enum):
    """Day status stored on an attendance record."""

    PRESENT = "present"
    ABSENT = "absent"
    HALF_DAY = "half-day"
    HOLIDAY = "holiday"
    WEEKEND = "weekend"
    ON_LEAVE = "on-leave"


class WorkType(str, Enum):
    OFFICE = "office"
    REMOTE = "remote"
    HYBRID = "hybrid"


class LeaveType(str, Enum):
    ANNUAL = "annual"
    SICK = "sick"
    CASUAL = "casual"
    PERSONAL = "personal"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    UNPAID = "unpaid"
    EMERGENCY = "emergency"


class LeaveStatus(str, Enum):
    """Leave workflow: pending -> approved|rejected -> (cancelled)."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class LeavePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class HalfDayPeriod(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"


class PayrollStatus(str, Enum):
    """Payroll workflow: draft -> pending -> approved -> paid, cancelled before paid."""

    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"
    CHEQUE = "cheque"
    ONLINE = "online"
    MOBILE_PAYMENT = "mobile_payment"


class PaymentGateway(str, Enum):
    MANUAL = "manual"
    PAYHERE = "payhere"
    STRIPE = "stripe"
    PAYPAL = "paypal"
    BANK_API = "bank_api"


class PaymentStatus(str, Enum):
    """Disbursement lifecycle of a payment (independent of the payroll status)."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class NotificationType(str, Enum):
    LEAVE_REQUEST = "leave_request"
    LEAVE_APPROVED = "leave_approved"
    LEAVE_REJECTED = "leave_rejected"
    PAYSLIP = "payslip"
    PAYMENT = "payment"
    PAYMENT_FAILED = "payment_failed"
    ANNOUNCEMENT = "announcement"
    BIRTHDAY = "birthday"
    TASK = "task"
    REMINDER = "reminder"
    SYSTEM = "system"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
