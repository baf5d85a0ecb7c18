from __future__ import annotations

import importlib
import logging
from types import ModuleType
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .api.http import ok, register_error_handlers
from .common.datetime_utils import parse_hhmm
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_default_accounts, list_tables

from .attendance.controller import register as register_attendance
from .branches.controller import register as register_branches
from .employees.controller import register as register_employees
from .leaves.controller import register as register_leaves
from .notifications.controller import register as register_notifications
from .payments.controller import register as register_payments
from .payroll.controller import register as register_payroll
from .reports.controller import register as register_reports
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def _configure_logging(settings: ModuleType) -> None:
    logging.basicConfig(
        level=getattr(logging, str(getattr(settings, "LOG_LEVEL", "INFO")).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _bootstrap_database(settings: ModuleType, db_config: dict) -> None:
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config)
        logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config)
        ensure_default_accounts(
            db_config,
            admin_email=getattr(settings, "ADMIN_EMAIL"),
            admin_password=getattr(settings, "ADMIN_PASSWORD"),
        )


def create_app(container: Optional[Container] = None, *, settings_module: Optional[str] = None) -> Flask:
    """Application factory.

    Passing ``container`` skips database bootstrap entirely (tests wire in-memory repositories).
    """

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    _configure_logging(settings)

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["JSON_SORT_KEYS"] = False

    if container is None:
        db_config = dict(getattr(settings, "DB_CONFIG"))
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        _bootstrap_database(settings, db_config)
        container = build_container(
            db_config=db_config,
            jwt_secret=getattr(settings, "JWT_SECRET"),
            jwt_expires_days=int(getattr(settings, "JWT_EXPIRES_DAYS", 7)),
            opening_time=parse_hhmm(getattr(settings, "DEFAULT_OPENING_TIME", "09:00")),
            closing_time=parse_hhmm(getattr(settings, "DEFAULT_CLOSING_TIME", "18:00")),
            company_name=getattr(settings, "COMPANY_NAME", "TimePay"),
        )

    app.extensions["timepay"] = container
    register_error_handlers(app)

    register_users(app, container)
    register_employees(app, container)
    register_branches(app, container)
    register_attendance(app, container)
    register_leaves(app, container)
    register_payroll(app, container)
    register_payments(app, container)
    register_notifications(app, container)
    register_reports(app, container)

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        return ok({"status": "OK", "company": container.company_name})

    return app
