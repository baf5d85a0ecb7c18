from __future__ import annotations

from flask import Flask, request

from ..api.http import arg_enum, arg_int, body, ok
from ..api.security import build_guard, current_employee_id, current_user
from ..common.validators import require_enum
from ..container import Container
from ..core.enums import EmployeeStatus, Position
from ..core.exceptions import ValidationError
from ..core.policy import ensure_allowed
from .payloads import (
    compensation_from_payload,
    employee_from_payload,
    employment_from_payload,
    leave_balance_from_payload,
    personal_from_payload,
)
from .service import EmployeeChanges


def register(app: Flask, container: Container) -> None:
    guard = build_guard(container.auth_service)
    employees = container.employee_service

    @app.route("/api/employees", methods=["GET"], endpoint="employees_list")
    @guard("employees.view")
    def list_employees():
        items = employees.list_employees(
            status=arg_enum(EmployeeStatus, "status"),
            department=request.args.get("department") or None,
            branch_id=arg_int("branch_id"),
            position=arg_enum(Position, "position"),
            search=request.args.get("search") or None,
        )
        return ok(items, count=len(items))

    @app.route("/api/employees/profile", methods=["GET"], endpoint="employees_profile")
    @guard("self.profile")
    def my_profile():
        return ok(employees.get_employee(current_employee_id()))

    @app.route("/api/employees/departments", methods=["GET"], endpoint="employees_departments")
    @guard("employees.view")
    def departments():
        return ok(employees.departments())

    @app.route("/api/employees/<int:employee_id>", methods=["GET"], endpoint="employees_get")
    @guard()
    def get_employee(employee_id: int):
        if current_user().employee_id != employee_id:
            ensure_allowed(current_user().role, "employees.view")
        return ok(employees.get_employee(employee_id))

    @app.route("/api/employees", methods=["POST"], endpoint="employees_create")
    @guard("employees.manage")
    def create_employee():
        personal, employment, compensation, leave_balance = employee_from_payload(body())
        employee = employees.create_employee(
            personal=personal,
            employment=employment,
            compensation=compensation,
            leave_balance=leave_balance,
        )
        return ok(employee, message="Employee created successfully", status=201)

    @app.route("/api/employees/<int:employee_id>", methods=["PUT"], endpoint="employees_update")
    @guard("employees.manage")
    def update_employee(employee_id: int):
        data = body()
        current = employees.get_employee(employee_id)
        changes = EmployeeChanges(
            personal=personal_from_payload(data["personal_info"], current.personal) if "personal_info" in data else None,
            employment=(
                employment_from_payload(data["employment_info"], current.employment)
                if "employment_info" in data
                else None
            ),
            compensation=(
                compensation_from_payload(data["compensation"], current.compensation)
                if "compensation" in data
                else None
            ),
            leave_balance=leave_balance_from_payload(data.get("leave_balance")),
        )
        if changes == EmployeeChanges():
            raise ValidationError("Nothing to update")
        return ok(employees.update_employee(employee_id, changes), message="Employee updated successfully")

    @app.route("/api/employees/<int:employee_id>/status", methods=["PUT"], endpoint="employees_status")
    @guard("employees.manage")
    def update_status(employee_id: int):
        status = require_enum(EmployeeStatus, body().get("status"), "status")
        return ok(employees.update_status(employee_id, status), message="Employee status updated")

    @app.route("/api/employees/<int:employee_id>", methods=["DELETE"], endpoint="employees_delete")
    @guard("employees.delete")
    def delete_employee(employee_id: int):
        employees.delete_employee(employee_id)
        container.user_service.delete_for_employee(employee_id)
        return ok(message="Employee deleted successfully")

    @app.route("/api/employees/<int:employee_id>/leave-history", methods=["GET"], endpoint="employees_leave_history")
    @guard()
    def leave_history(employee_id: int):
        if current_user().employee_id != employee_id:
            ensure_allowed(current_user().role, "employees.view")
        return ok(employees.leave_history(employee_id))
