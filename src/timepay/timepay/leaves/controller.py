from __future__ import annotations

from typing import Any

from flask import Flask

from ..api.http import arg_bool, arg_date, arg_enum, arg_int, body, ok
from ..api.security import build_guard, current_employee_id, current_user
from ..common.validators import require_enum
from ..container import Container
from ..core.enums import HalfDayPeriod, LeavePriority, LeaveStatus, LeaveType
from ..core.exceptions import ValidationError


def configuration_fields(data: dict) -> dict[str, Any]:
    fields = dict(data)
    fields.pop("config_id", None)
    if "leave_type" in fields:
        fields["leave_type"] = require_enum(LeaveType, fields["leave_type"], "leave type")
    for key in ("applicable_positions", "applicable_employment_types"):
        if key in fields:
            if not isinstance(fields[key], list):
                raise ValidationError(f"{key} must be a list")
            fields[key] = tuple(str(v) for v in fields[key])
    return fields


def register(app: Flask, container: Container) -> None:
    guard = build_guard(container.auth_service)
    leaves = container.leave_service
    configurations = container.leave_configuration_service

    @app.route("/api/leaves/apply", methods=["POST"], endpoint="leaves_apply")
    @guard("self.leaves")
    def apply():
        data = body()
        start, end = arg_date("start_date", source=data), arg_date("end_date", source=data)
        if start is None or end is None:
            raise ValidationError("start_date and end_date are required")
        is_half_day = bool(arg_bool("is_half_day", source=data))
        leave = leaves.apply_leave(
            current_employee_id(),
            leave_type=require_enum(LeaveType, data.get("leave_type"), "leave type"),
            start_date=start,
            end_date=end,
            reason=data.get("reason", ""),
            is_half_day=is_half_day,
            half_day_period=(
                require_enum(HalfDayPeriod, data.get("half_day_period", HalfDayPeriod.MORNING.value), "half day period")
                if is_half_day
                else None
            ),
            priority=require_enum(LeavePriority, data.get("priority", LeavePriority.MEDIUM.value), "priority"),
        )
        return ok(leave, message="Leave application submitted successfully", status=201)

    @app.route("/api/leaves/my-leaves", methods=["GET"], endpoint="leaves_mine")
    @guard("self.leaves")
    def my_leaves():
        items = leaves.my_leaves(current_employee_id(), status=arg_enum(LeaveStatus, "status"), year=arg_int("year"))
        return ok(items, count=len(items))

    @app.route("/api/leaves/balance", methods=["GET"], endpoint="leaves_balance")
    @guard("self.leaves")
    def balance():
        return ok(leaves.leave_balance(current_employee_id(), year=arg_int("year")))

    @app.route("/api/leaves/<int:leave_id>/cancel", methods=["PUT"], endpoint="leaves_cancel")
    @guard("self.leaves")
    def cancel(leave_id: int):
        leave = leaves.cancel_leave(leave_id, employee_id=current_employee_id())
        return ok(leave, message="Leave cancelled successfully")

    @app.route("/api/leaves/all", methods=["GET"], endpoint="leaves_all")
    @guard("leaves.view")
    def all_leaves():
        items = leaves.list_leaves(
            status=arg_enum(LeaveStatus, "status"),
            leave_type=arg_enum(LeaveType, "leave_type"),
            employee_id=arg_int("employee_id"),
            branch_id=arg_int("branch_id"),
        )
        return ok(items, count=len(items))

    @app.route("/api/leaves/pending", methods=["GET"], endpoint="leaves_pending")
    @guard("leaves.view")
    def pending():
        items = leaves.pending_leaves(branch_id=arg_int("branch_id"))
        return ok(items, count=len(items))

    @app.route("/api/leaves/<int:leave_id>/approve", methods=["PUT"], endpoint="leaves_approve")
    @guard("leaves.decide")
    def approve(leave_id: int):
        leave = leaves.approve_leave(leave_id, actor_user_id=current_user().user_id, comments=body().get("comments"))
        return ok(leave, message="Leave approved successfully")

    @app.route("/api/leaves/<int:leave_id>/reject", methods=["PUT"], endpoint="leaves_reject")
    @guard("leaves.decide")
    def reject(leave_id: int):
        data = body()
        leave = leaves.reject_leave(
            leave_id,
            actor_user_id=current_user().user_id,
            reason=data.get("rejection_reason") or data.get("reason"),
        )
        return ok(leave, message="Leave rejected")

    @app.route("/api/leaves/employee/<int:employee_id>", methods=["GET"], endpoint="leaves_employee")
    @guard("leaves.view")
    def employee_leaves(employee_id: int):
        items = leaves.employee_leaves(employee_id)
        return ok(items, count=len(items))

    @app.route("/api/leaves/stats", methods=["GET"], endpoint="leaves_stats")
    @guard("leaves.stats")
    def stats():
        return ok(leaves.leave_stats(year=arg_int("year")))

    @app.route("/api/leaves/configurations", methods=["GET"], endpoint="leaves_configurations")
    @guard("leaves.configurations.view")
    def list_configurations():
        return ok(configurations.list_configurations(active_only=bool(arg_bool("active_only"))))

    @app.route("/api/leaves/configurations", methods=["POST"], endpoint="leaves_configurations_create")
    @guard("leaves.configurations.manage")
    def create_configuration():
        config = configurations.create_configuration(**configuration_fields(body()))
        return ok(config, message="Leave configuration created successfully", status=201)

    @app.route("/api/leaves/configurations/<int:config_id>", methods=["PUT"], endpoint="leaves_configurations_update")
    @guard("leaves.configurations.manage")
    def update_configuration(config_id: int):
        config = configurations.update_configuration(config_id, configuration_fields(body()))
        return ok(config, message="Leave configuration updated successfully")
