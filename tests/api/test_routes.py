from __future__ import annotations

import pytest

from builders import add_employee, add_user
from timepay.core.enums import Role
from timepay.main import create_app


@pytest.fixture
def client(container):
    app = create_app(container, settings_module="timepay.config.testing")
    return app.test_client()


def _login(client, user, password="secret123") -> dict:
    resp = client.post("/api/auth/login", json={"email": user.email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return {"Authorization": f"Bearer {resp.get_json()['data']['token']}"}


@pytest.fixture
def staff(repos):
    emp = add_employee(repos, first_name="Sunil")
    return emp, add_user(repos, emp, role=Role.EMPLOYEE)


@pytest.fixture
def hr(repos):
    emp = add_employee(repos, first_name="Hiru", department="HR")
    return emp, add_user(repos, emp, role=Role.HR_MANAGER)


def test_health(client):
    resp = client.get("/api/health")

    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "data": {"status": "OK", "company": "TimePay"}}


def test_login_and_me(client, staff):
    emp, user = staff
    headers = _login(client, user)

    me = client.get("/api/auth/me", headers=headers).get_json()["data"]

    assert me["user"]["email"] == user.email
    assert me["employee"]["employee_code"] == emp.employee_code
    assert me["employee"]["full_name"] == "Sunil Perera"
    assert "password_hash" not in me["user"]
    assert "self.attendance" in me["permissions"]


def test_bad_login_uses_error_envelope(client, staff):
    _, user = staff

    resp = client.post("/api/auth/login", json={"email": user.email, "password": "nope"})

    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "error": "Invalid credentials"}


def test_missing_or_bad_token(client):
    assert client.get("/api/auth/me").status_code == 401
    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Invalid token"


def test_role_without_capability_gets_403(client, staff):
    _, user = staff
    headers = _login(client, user)

    resp = client.get("/api/employees", headers=headers)

    assert resp.status_code == 403
    assert resp.get_json()["error"] == "Not authorized to access this resource"


def test_hr_lists_employees(client, staff, hr):
    _, user = hr

    resp = client.get("/api/employees?department=HR", headers=_login(client, user))

    body = resp.get_json()
    assert resp.status_code == 200
    assert body["count"] == 1
    assert body["data"][0]["personal"]["first_name"] == "Hiru"


def test_create_employee_validation_maps_to_400(client, hr):
    _, user = hr

    resp = client.post(
        "/api/employees",
        headers=_login(client, user),
        json={"personal_info": {"first_name": "New"}, "employment_info": {"position": "driver"}},
    )

    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_clock_in_then_duplicate(client, staff):
    _, user = staff
    headers = _login(client, user)

    first = client.post("/api/attendance/clock-in", headers=headers, json={"work_type": "remote"})
    second = client.post("/api/attendance/clock-in", headers=headers, json={})

    assert first.status_code == 201
    assert first.get_json()["data"]["work_type"] == "remote"
    assert second.status_code == 400
    assert second.get_json()["error"] == "Already clocked in today"


def test_unknown_route_is_json_404(client):
    resp = client.get("/api/nope")

    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_payslip_download_and_access(client, container, staff, hr, repos):
    emp, user = staff
    other = add_employee(repos, first_name="Other")
    other_user = add_user(repos, other)
    payroll = container.payroll_service.generate(emp.employee_id, month=3, year=2025)

    resp = client.get(f"/api/payroll/download/{payroll.payroll_id}", headers=_login(client, user))
    assert resp.status_code == 200
    assert resp.mimetype == "application/pdf"
    assert resp.data.startswith(b"%PDF")
    assert f"payslip-{emp.employee_code}-2025-03.pdf" in resp.headers["Content-Disposition"]

    denied = client.get(f"/api/payroll/payslip/{payroll.payroll_id}", headers=_login(client, other_user))
    assert denied.status_code == 403

    allowed = client.get(f"/api/payroll/payslip/{payroll.payroll_id}", headers=_login(client, hr[1]))
    assert allowed.get_json()["data"]["net_salary"] == 92000


def test_generate_payroll_requires_finance_role(client, staff, hr):
    emp, user = staff
    payload = {"employee_id": emp.employee_id, "month": 3, "year": 2025, "bonus": 1000}

    assert client.post("/api/payroll/generate", headers=_login(client, user), json=payload).status_code == 403

    resp = client.post("/api/payroll/generate", headers=_login(client, hr[1]), json=payload)
    assert resp.status_code == 201
    assert resp.get_json()["data"]["gross_salary"] == 101000

    again = client.post("/api/payroll/generate", headers=_login(client, hr[1]), json=payload)
    assert again.status_code == 400
    assert again.get_json()["error"] == "Payroll already exists for this period"


def test_notifications_inbox(client, container, staff):
    emp, user = staff
    container.notification_service.send(recipient_ids=[emp.employee_id], title="Hi", message="Welcome aboard")
    headers = _login(client, user)

    inbox = client.get("/api/notifications/my-notifications", headers=headers).get_json()
    assert inbox["total"] == 1
    assert inbox["unread"] == 1

    marked = client.put("/api/notifications/mark-all-read", headers=headers).get_json()
    assert marked["data"] == {"updated": 1}
    assert client.get("/api/notifications/unread-count", headers=headers).get_json()["data"] == {"count": 0}


def test_report_export_is_xlsx(client, staff, hr):
    resp = client.get("/api/reports/export/employees", headers=_login(client, hr[1]))

    assert resp.status_code == 200
    assert resp.data.startswith(b"PK")
    assert "employees.xlsx" in resp.headers["Content-Disposition"]
