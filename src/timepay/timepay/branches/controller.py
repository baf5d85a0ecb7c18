from __future__ import annotations

from typing import Any

from flask import Flask

from ..api.http import arg_bool, body, ok
from ..api.security import build_guard
from ..common.datetime_utils import parse_hhmm
from ..container import Container
from ..core.exceptions import ValidationError

_TIME_FIELDS = ("opening_time", "closing_time")
_LIST_FIELDS = ("departments", "working_days")


def branch_fields(data: dict) -> dict[str, Any]:
    """JSON body -> keyword arguments for BranchService; unknown keys are left for the service to reject."""

    fields = dict(data)
    for key in _TIME_FIELDS:
        if fields.get(key):
            try:
                fields[key] = parse_hhmm(str(fields[key]))
            except ValueError:
                raise ValidationError(f"{key} must be HH:MM") from None
        elif key in fields:
            del fields[key]
    for key in _LIST_FIELDS:
        if key in fields:
            if not isinstance(fields[key], list):
                raise ValidationError(f"{key} must be a list")
            fields[key] = tuple(str(v) for v in fields[key])
    if "manager_id" in fields and fields["manager_id"] not in (None, ""):
        fields["manager_id"] = int(fields["manager_id"])
    return fields


def register(app: Flask, container: Container) -> None:
    guard = build_guard(container.auth_service)
    branches = container.branch_service

    @app.route("/api/branches", methods=["POST"], endpoint="branches_create")
    @guard("branches.manage")
    def create_branch():
        branch = branches.create_branch(**branch_fields(body()))
        return ok(branch, message="Branch created successfully", status=201)

    @app.route("/api/branches", methods=["GET"], endpoint="branches_list")
    @guard("branches.view")
    def list_branches():
        items = branches.list_branches(active_only=bool(arg_bool("active_only")))
        return ok(items, count=len(items))

    @app.route("/api/branches/<int:branch_id>", methods=["GET"], endpoint="branches_get")
    @guard("branches.view")
    def get_branch(branch_id: int):
        return ok(branches.get_branch(branch_id))

    @app.route("/api/branches/<int:branch_id>", methods=["PUT"], endpoint="branches_update")
    @guard("branches.manage")
    def update_branch(branch_id: int):
        branch = branches.update_branch(branch_id, branch_fields(body()))
        return ok(branch, message="Branch updated successfully")

    @app.route("/api/branches/<int:branch_id>", methods=["DELETE"], endpoint="branches_delete")
    @guard("branches.manage")
    def delete_branch(branch_id: int):
        branches.delete_branch(branch_id)
        return ok(message="Branch deleted successfully")

    @app.route("/api/branches/<int:branch_id>/employees", methods=["GET"], endpoint="branches_employees")
    @guard("branches.view")
    def branch_employees(branch_id: int):
        items = branches.branch_employees(branch_id)
        return ok(items, count=len(items))

    @app.route("/api/branches/<int:branch_id>/stats", methods=["GET"], endpoint="branches_stats")
    @guard("branches.view")
    def branch_stats(branch_id: int):
        return ok(branches.branch_stats(branch_id))
