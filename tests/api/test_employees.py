from __future__ import annotations

from uuid import uuid4

from fastapi.testclient import TestClient

from leavedesk.models.organization import Role
from tests.conftest import (
    add_test_member,
    auth,
    create_test_org,
    create_test_user,
    get_membership,
)


def _org():
    org = create_test_org("staff-org")
    admin = create_test_user("admin@example.com", "Ada Admin")
    employee = create_test_user("emp@example.com", "Eve Employee")
    add_test_member(org.id, admin.id, Role.ADMIN, is_default=True)
    add_test_member(org.id, employee.id, Role.EMPLOYEE, is_default=True)
    return org, admin, employee


def test_list_employees_includes_profile(client: TestClient) -> None:
    _, admin, _ = _org()
    resp = client.get("/v1/employees", headers=auth(admin.id))
    assert resp.status_code == 200
    by_email = {e["email"]: e for e in resp.json()}
    assert by_email["emp@example.com"]["full_name"] == "Eve Employee"
    assert by_email["emp@example.com"]["role"] == "employee"


def test_employee_reads_own_entry_only(client: TestClient) -> None:
    _, admin, employee = _org()
    resp = client.get(f"/v1/employees/{employee.id}", headers=auth(employee.id))
    assert resp.status_code == 200
    assert resp.json()["email"] == "emp@example.com"

    resp = client.get(f"/v1/employees/{admin.id}", headers=auth(employee.id))
    assert resp.status_code == 403
    assert resp.json() == {"detail": "Insufficient permissions"}


def test_add_existing_user_by_email(client: TestClient) -> None:
    org, admin, _ = _org()
    newcomer = create_test_user("new@example.com")
    resp = client.post(
        "/v1/employees",
        json={"email": "NEW@example.com", "role": "manager", "employment_type": "part_time"},
        headers=auth(admin.id),
    )
    assert resp.status_code == 201
    assert resp.json()["role"] == "manager"
    membership = get_membership(org.id, newcomer.id)
    assert membership.employment_type == "part_time"
    assert membership.is_default is True

    resp = client.post("/v1/employees", json={"email": "new@example.com"}, headers=auth(admin.id))
    assert resp.status_code == 409


def test_add_unknown_user_is_404(client: TestClient) -> None:
    _, admin, _ = _org()
    resp = client.post("/v1/employees", json={"email": "ghost@example.com"}, headers=auth(admin.id))
    assert resp.status_code == 404


def test_remove_employee(client: TestClient) -> None:
    org, admin, employee = _org()
    resp = client.delete(f"/v1/employees/{employee.id}", headers=auth(admin.id))
    assert resp.status_code == 204
    membership = get_membership(org.id, employee.id)
    assert membership.is_active is False
    assert membership.is_default is False

    resp = client.get("/v1/organization", headers=auth(employee.id))
    assert resp.status_code == 400
    assert resp.json() == {"detail": "No organization context"}


def test_remove_unknown_employee_is_denied(client: TestClient) -> None:
    _, admin, _ = _org()
    resp = client.delete(f"/v1/employees/{uuid4()}", headers=auth(admin.id))
    assert resp.status_code == 403
    assert resp.json() == {"detail": "Organization access denied"}


def test_create_organization_makes_caller_admin(client: TestClient) -> None:
    user_id = uuid4()
    resp = client.post(
        "/v1/organizations", json={"name": "Fresh Co", "slug": "Fresh-Co"}, headers=auth(user_id)
    )
    assert resp.status_code == 201
    org = resp.json()
    assert org["slug"] == "fresh-co"
    assert org["status"] == "active"

    current = client.get("/v1/workspaces/current", headers=auth(user_id)).json()
    assert current["organization_id"] == org["id"]
    assert current["role"] == "admin"

    resp = client.post(
        "/v1/organizations", json={"name": "Again", "slug": "fresh-co"}, headers=auth(uuid4())
    )
    assert resp.status_code == 409


def test_create_organization_validates_slug(client: TestClient) -> None:
    resp = client.post(
        "/v1/organizations", json={"name": "Bad", "slug": "no spaces"}, headers=auth(uuid4())
    )
    assert resp.status_code == 422
