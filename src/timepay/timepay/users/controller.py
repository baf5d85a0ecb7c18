from __future__ import annotations

import logging

from flask import Flask, current_app

from ..api.http import arg_bool, body, ok
from ..api.security import build_guard, current_user
from ..common.validators import require_enum, require_non_empty
from ..core.enums import Role
from ..core.exceptions import NotFoundError
from ..core.policy import actions_for
from ..container import Container
from ..employees.payloads import employee_from_payload

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    guard = build_guard(container.auth_service)

    # ---- authentication ----

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        data = body()
        result = container.auth_service.login(data.get("email", ""), data.get("password", ""))
        return ok({"token": result.token, "user": result.user}, message="Login successful")

    @app.route("/api/auth/register", methods=["POST"], endpoint="auth_register")
    def register_account():
        data = body()
        personal, employment, compensation, _ = employee_from_payload(data)
        result = container.auth_service.register(
            email=data.get("email", ""),
            password=data.get("password", ""),
            personal=personal,
            employment=employment,
            compensation=compensation,
        )
        return ok({"token": result.token, "user": result.user}, message="Registration successful", status=201)

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    @guard()
    def logout():
        # tokens are stateless; the client drops its copy
        return ok(message="Logged out successfully")

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @guard()
    def me():
        user = current_user()
        employee = None
        if user.employee_id is not None:
            try:
                employee = container.employee_service.get_employee(user.employee_id)
            except NotFoundError:
                employee = None
        return ok({"user": user, "employee": employee, "permissions": actions_for(user.role)})

    @app.route("/api/auth/change-password", methods=["PUT"], endpoint="auth_change_password")
    @guard()
    def change_password():
        data = body()
        container.auth_service.change_password(
            user_id=current_user().user_id,
            current_password=data.get("current_password", ""),
            new_password=data.get("new_password", ""),
        )
        return ok(message="Password updated successfully")

    @app.route("/api/auth/forgot-password", methods=["POST"], endpoint="auth_forgot_password")
    def forgot_password():
        data = body()
        email = require_non_empty(data.get("email", ""), "Email")
        token = container.auth_service.request_password_reset(email)
        extra = {}
        # no mail delivery: the token is only handed back in debug runs
        if token and current_app.config.get("DEBUG"):
            extra["reset_token"] = token
        return ok(message="If the email is registered, a reset token has been issued", **extra)

    @app.route("/api/auth/reset-password/<token>", methods=["PUT"], endpoint="auth_reset_password")
    def reset_password(token: str):
        data = body()
        container.auth_service.reset_password(token, data.get("password", ""))
        return ok(message="Password reset successful")

    # ---- role administration ----

    @app.route("/api/roles", methods=["GET"], endpoint="roles_list")
    @guard("roles.manage")
    def roles():
        return ok([{"role": r.value, "actions": actions_for(r)} for r in Role])

    @app.route("/api/roles/users", methods=["GET"], endpoint="roles_users")
    @guard("roles.manage")
    def list_users():
        return ok(container.user_service.list_accounts())

    @app.route("/api/roles/users", methods=["POST"], endpoint="roles_create_user")
    @guard("roles.manage")
    def create_user():
        data = body()
        personal, employment, compensation, _ = employee_from_payload(data)
        account = container.user_service.create_account(
            email=data.get("email", ""),
            password=data.get("password", ""),
            role=require_enum(Role, data.get("role", Role.EMPLOYEE.value), "role"),
            personal=personal,
            employment=employment,
            compensation=compensation,
        )
        return ok(account, message="User created successfully", status=201)

    @app.route("/api/roles/users/<int:user_id>", methods=["PUT"], endpoint="roles_update_user")
    @guard("roles.manage")
    def update_user(user_id: int):
        data = body()
        actor = current_user()
        user = container.user_service.get_user(user_id)
        if "role" in data:
            user = container.user_service.update_role(
                actor=actor, user_id=user_id, role=require_enum(Role, data["role"], "role")
            )
        is_active = arg_bool("is_active", source=data)
        if is_active is not None:
            user = container.user_service.set_active(actor=actor, user_id=user_id, is_active=is_active)
        return ok(user, message="User updated successfully")

    @app.route("/api/roles/users/<int:user_id>", methods=["DELETE"], endpoint="roles_delete_user")
    @guard("roles.manage")
    def delete_user(user_id: int):
        container.user_service.delete_account(actor=current_user(), user_id=user_id)
        return ok(message="User deleted successfully")

    @app.route("/api/roles/users/<int:user_id>/activate", methods=["PUT"], endpoint="roles_activate_user")
    @guard("roles.manage")
    def activate_user(user_id: int):
        user = container.user_service.set_active(actor=current_user(), user_id=user_id, is_active=True)
        return ok(user, message="User activated successfully")

    @app.route("/api/roles/users/<int:user_id>/deactivate", methods=["PUT"], endpoint="roles_deactivate_user")
    @guard("roles.manage")
    def deactivate_user(user_id: int):
        user = container.user_service.set_active(actor=current_user(), user_id=user_id, is_active=False)
        return ok(user, message="User deactivated successfully")

    @app.route("/api/roles/users/<int:user_id>/role", methods=["PUT"], endpoint="roles_update_role")
    @guard("roles.manage")
    def update_role(user_id: int):
        data = body()
        user = container.user_service.update_role(
            actor=current_user(), user_id=user_id, role=require_enum(Role, data.get("role"), "role")
        )
        logger.info("user %s role changed by %s", user_id, current_user().user_id)
        return ok(user, message="User role updated successfully")
