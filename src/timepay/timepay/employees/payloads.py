"""Request payload parsing for employee data (JSON dicts -> domain dataclasses).

A ``base`` argument turns the parser into a partial update: missing keys keep the
base value.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Optional

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_enum, require_non_negative
from ..core.enums import AmountType, EmployeeStatus, EmploymentType, Position
from ..core.exceptions import ValidationError
from .model import Compensation, EmploymentInfo, PayComponent, PersonalInfo


def _date(value: Any, field_name: str):
    if value in (None, ""):
        return None
    try:
        return parse_iso_date(str(value)[:10])
    except ValueError:
        raise ValidationError(f"Invalid {field_name}, expected YYYY-MM-DD") from None


def components_from_payload(items: Any, field_name: str) -> tuple[PayComponent, ...]:
    if items is None:
        return ()
    if not isinstance(items, list):
        raise ValidationError(f"{field_name} must be a list")
    parsed = []
    for item in items:
        if not isinstance(item, dict) or not item.get("name"):
            raise ValidationError(f"Each entry of {field_name} needs a name")
        parsed.append(
            PayComponent(
                name=str(item["name"]),
                type=require_enum(AmountType, item.get("type", AmountType.FIXED.value), "amount type"),
                amount=require_non_negative(item.get("amount", 0), "amount"),
                description=item.get("description"),
            )
        )
    return tuple(parsed)


def personal_from_payload(data: dict, base: Optional[PersonalInfo] = None) -> PersonalInfo:
    if base is None:
        return PersonalInfo(
            first_name=str(data.get("first_name") or ""),
            last_name=str(data.get("last_name") or ""),
            email=data.get("email"),
            phone=data.get("phone"),
            date_of_birth=_date(data.get("date_of_birth"), "date of birth"),
            gender=data.get("gender"),
            national_id=data.get("national_id"),
            address=data.get("address"),
        )

    changes: dict[str, Any] = {}
    for key in ("first_name", "last_name", "email", "phone", "gender", "national_id", "address"):
        if key in data:
            changes[key] = data[key]
    if "date_of_birth" in data:
        changes["date_of_birth"] = _date(data["date_of_birth"], "date of birth")
    return replace(base, **changes)


def employment_from_payload(data: dict, base: Optional[EmploymentInfo] = None) -> EmploymentInfo:
    def pick(key: str, default: Any) -> Any:
        return data[key] if key in data else default

    position = pick("position", base.position if base else None)
    if position is None:
        raise ValidationError("Position is required")
    joining = _date(data.get("joining_date"), "joining date") if "joining_date" in data else None
    if joining is None:
        joining = base.joining_date if base else None
    if joining is None:
        raise ValidationError("Joining date is required")

    branch_id = pick("branch_id", base.branch_id if base else None)
    return EmploymentInfo(
        position=require_enum(Position, position, "position"),
        department=str(pick("department", base.department if base else "") or ""),
        joining_date=joining,
        branch_id=int(branch_id) if branch_id not in (None, "") else None,
        employment_type=require_enum(
            EmploymentType,
            pick("employment_type", base.employment_type.value if base else EmploymentType.FULL_TIME.value),
            "employment type",
        ),
        status=require_enum(
            EmployeeStatus,
            pick("status", base.status.value if base else EmployeeStatus.ACTIVE.value),
            "status",
        ),
        working_hours_per_day=require_non_negative(
            pick("working_hours_per_day", base.working_hours_per_day if base else 8), "working hours per day"
        ),
        overtime_rate=require_non_negative(
            pick("overtime_rate", base.overtime_rate if base else 1.5), "overtime rate"
        ),
    )


def compensation_from_payload(data: dict, base: Optional[Compensation] = None) -> Compensation:
    current = base or Compensation(base_salary=0.0)
    if base is None and "base_salary" not in data:
        raise ValidationError("Base salary is required")

    changes: dict[str, Any] = {}
    if "base_salary" in data:
        changes["base_salary"] = require_non_negative(data["base_salary"], "Base salary")
    if "currency" in data:
        changes["currency"] = str(data["currency"])
    if "allowances" in data:
        changes["allowances"] = components_from_payload(data["allowances"], "allowances")
    if "deductions" in data:
        changes["deductions"] = components_from_payload(data["deductions"], "deductions")
    for key in ("epf_employee_percentage", "epf_employer_percentage", "etf_percentage"):
        if key in data:
            changes[key] = require_non_negative(data[key], key.replace("_", " "))
    return replace(current, **changes)


def leave_balance_from_payload(data: Any) -> Optional[dict[str, float]]:
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValidationError("leave_balance must be an object")
    return {str(k): require_non_negative(v, f"leave balance {k}") for k, v in data.items()}


def _section(data: dict, key: str) -> dict:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ValidationError(f"{key} must be an object")
    return value


def employee_from_payload(data: dict) -> tuple[PersonalInfo, EmploymentInfo, Compensation, Optional[dict[str, float]]]:
    """Parse ``{personal_info, employment_info, compensation, leave_balance}`` for a new employee."""

    return (
        personal_from_payload(_section(data, "personal_info")),
        employment_from_payload(_section(data, "employment_info")),
        compensation_from_payload(_section(data, "compensation")),
        leave_balance_from_payload(data.get("leave_balance")),
    )
