"""Table-driven role checks across the organization-scoped endpoints.

Each row: endpoint pattern, method, caller, expected HTTP status.  Callers
are an admin, a manager and an employee of one organization, a signed-in
user with no membership there, and an anonymous client.  The organization
is always named through the X-Organization-Id header.
"""

from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from leavedesk.models.organization import Role
from tests.conftest import add_test_member, auth, create_test_org, get_membership


def _setup_org_with_roles() -> tuple[str, dict[str, str]]:
    """Create an org with one member per role. Return (org_id, caller->user_id)."""
    org = create_test_org("rbac-org")
    users: dict[str, str] = {}
    for role in Role:
        user_id = uuid4()
        add_test_member(org.id, user_id, role)
        users[role.value] = str(user_id)
    users["non_member"] = str(uuid4())
    return str(org.id), users


_SEATS = "/v1/billing/seats"
_INVITES = "/v1/organizations/{org_id}/invitations"

# (endpoint_template, method, caller, expected_status)
_ORG_RBAC_CASES: list[tuple[str, str, str | None, int]] = [
    # any member
    ("/v1/organization", "GET", "admin", 200),
    ("/v1/organization", "GET", "manager", 200),
    ("/v1/organization", "GET", "employee", 200),
    ("/v1/organization", "GET", "non_member", 403),
    ("/v1/organization", "GET", None, 401),
    ("/v1/leave-requests", "GET", "employee", 200),
    ("/v1/leave-requests", "GET", "non_member", 403),
    ("/v1/teams", "GET", "employee", 200),
    ("/v1/workspaces/current", "GET", "employee", 200),
    # reviewers
    ("/v1/leave-requests?scope=all", "GET", "admin", 200),
    ("/v1/leave-requests?scope=all", "GET", "manager", 200),
    ("/v1/leave-requests?scope=all", "GET", "employee", 403),
    ("/v1/organization/members", "GET", "admin", 200),
    ("/v1/organization/members", "GET", "manager", 200),
    ("/v1/organization/members", "GET", "employee", 403),
    ("/v1/employees", "GET", "manager", 200),
    ("/v1/employees", "GET", "employee", 403),
    ("/v1/teams", "POST", "admin", 201),
    ("/v1/teams", "POST", "manager", 201),
    ("/v1/teams", "POST", "employee", 403),
    ("/v1/teams", "POST", None, 401),
    # admins only
    ("/v1/organization/settings", "GET", "admin", 200),
    ("/v1/organization/settings", "GET", "manager", 403),
    ("/v1/organization/settings", "GET", "employee", 403),
    (_SEATS, "GET", "admin", 200),
    (_SEATS, "GET", "manager", 403),
    (_SEATS, "GET", "non_member", 403),
    (_INVITES, "GET", "admin", 200),
    (_INVITES, "GET", "manager", 403),
    (_INVITES, "GET", "non_member", 403),
    (_INVITES, "GET", None, 401),
    (_INVITES, "POST", "admin", 201),
    (_INVITES, "POST", "employee", 403),
    ("/v1/workspaces/{org_id}", "DELETE", "admin", 200),
    ("/v1/workspaces/{org_id}", "DELETE", "manager", 403),
    ("/v1/workspaces/{org_id}", "DELETE", "employee", 403),
    ("/v1/workspaces/{org_id}", "DELETE", "non_member", 403),
]

_BODIES: dict[str, dict] = {
    "/v1/teams": {"name": "Platform"},
    _INVITES: {"email": "new.hire@example.com", "role": "employee"},
}


def _case_id(case: tuple) -> str:
    endpoint, method, caller, expected = case
    return f"{method} {endpoint} [{caller or 'anon'}] -> {expected}"


@pytest.mark.parametrize(
    "endpoint_tpl,method,caller,expected",
    _ORG_RBAC_CASES,
    ids=[_case_id(c) for c in _ORG_RBAC_CASES],
)
def test_org_rbac(
    client: TestClient,
    endpoint_tpl: str,
    method: str,
    caller: str | None,
    expected: int,
) -> None:
    org_id, users = _setup_org_with_roles()
    endpoint = endpoint_tpl.format(org_id=org_id)
    headers = auth(users[caller] if caller else None, **{"X-Organization-Id": org_id})

    if method == "GET":
        resp = client.get(endpoint, headers=headers)
    elif method == "POST":
        resp = client.post(endpoint, json=_BODIES[endpoint_tpl], headers=headers)
    elif method == "DELETE":
        resp = client.delete(endpoint, headers=headers)
    else:
        pytest.fail(f"Unsupported method: {method}")

    assert resp.status_code == expected, (
        f"{method} {endpoint} caller={caller}: "
        f"expected {expected}, got {resp.status_code}"
        f"\n  body: {resp.json()}"
    )


# --- role changes: admins only, last admin protected ---


def test_only_admin_can_change_role(client: TestClient) -> None:
    org = create_test_org("role-change-org")
    admin_id, manager_id, target_id = uuid4(), uuid4(), uuid4()
    add_test_member(org.id, admin_id, Role.ADMIN)
    add_test_member(org.id, manager_id, Role.MANAGER)
    add_test_member(org.id, target_id, Role.EMPLOYEE)

    url = f"/v1/organization/members/{target_id}"
    hint = {"X-Organization-Id": str(org.id)}

    resp = client.patch(url, json={"role": "manager"}, headers=auth(manager_id, **hint))
    assert resp.status_code == 403
    assert resp.json() == {"detail": "Insufficient permissions"}

    resp = client.patch(url, json={"role": "manager"}, headers=auth(admin_id, **hint))
    assert resp.status_code == 200
    assert resp.json()["role"] == "manager"


def test_role_change_applies_on_next_request(client: TestClient) -> None:
    org = create_test_org("promote-org")
    admin_id, user_id = uuid4(), uuid4()
    add_test_member(org.id, admin_id, Role.ADMIN)
    add_test_member(org.id, user_id, Role.EMPLOYEE)
    hint = {"X-Organization-Id": str(org.id)}

    assert client.get("/v1/employees", headers=auth(user_id, **hint)).status_code == 403
    client.patch(
        f"/v1/organization/members/{user_id}",
        json={"role": "manager"},
        headers=auth(admin_id, **hint),
    )
    assert client.get("/v1/employees", headers=auth(user_id, **hint)).status_code == 200


def test_last_admin_cannot_demote_themselves(client: TestClient) -> None:
    org = create_test_org("solo-admin-org")
    admin_id = uuid4()
    add_test_member(org.id, admin_id, Role.ADMIN)

    resp = client.patch(
        f"/v1/organization/members/{admin_id}",
        json={"role": "employee"},
        headers=auth(admin_id, **{"X-Organization-Id": str(org.id)}),
    )
    assert resp.status_code == 409


def test_unknown_member_role_change_is_denied(client: TestClient) -> None:
    org = create_test_org("missing-member-org")
    admin_id = uuid4()
    add_test_member(org.id, admin_id, Role.ADMIN)

    resp = client.patch(
        f"/v1/organization/members/{uuid4()}",
        json={"role": "manager"},
        headers=auth(admin_id, **{"X-Organization-Id": str(org.id)}),
    )
    assert resp.status_code == 403
    assert resp.json() == {"detail": "Organization access denied"}


# --- removing members ---


def test_admin_can_remove_member(client: TestClient) -> None:
    org = create_test_org("remove-org")
    admin_id, target_id = uuid4(), uuid4()
    add_test_member(org.id, admin_id, Role.ADMIN)
    add_test_member(org.id, target_id, Role.EMPLOYEE)
    hint = {"X-Organization-Id": str(org.id)}

    resp = client.delete(f"/v1/organization/members/{target_id}", headers=auth(admin_id, **hint))
    assert resp.status_code == 204

    # The removed member is locked out on their very next request.
    resp = client.get("/v1/organization", headers=auth(target_id, **hint))
    assert resp.status_code == 403


def test_member_of_another_org_looks_like_unknown_member(client: TestClient) -> None:
    """Removing or re-roling someone outside the org reveals nothing about them."""
    org = create_test_org("remove-org-3")
    elsewhere = create_test_org("remove-org-elsewhere")
    admin_id, outsider = uuid4(), uuid4()
    add_test_member(org.id, admin_id, Role.ADMIN)
    add_test_member(elsewhere.id, outsider, Role.EMPLOYEE)
    hint = {"X-Organization-Id": str(org.id)}

    for resp in (
        client.delete(f"/v1/organization/members/{outsider}", headers=auth(admin_id, **hint)),
        client.delete(f"/v1/organization/members/{uuid4()}", headers=auth(admin_id, **hint)),
        client.patch(
            f"/v1/organization/members/{outsider}",
            json={"role": "manager"},
            headers=auth(admin_id, **hint),
        ),
    ):
        assert resp.status_code == 403
        assert resp.json() == {"detail": "Organization access denied"}
    assert get_membership(elsewhere.id, outsider).is_active is True


def test_employee_cannot_remove_member(client: TestClient) -> None:
    org = create_test_org("remove-org-2")
    employee_id, target_id = uuid4(), uuid4()
    add_test_member(org.id, employee_id, Role.EMPLOYEE)
    add_test_member(org.id, target_id, Role.EMPLOYEE)

    resp = client.delete(
        f"/v1/organization/members/{target_id}",
        headers=auth(employee_id, **{"X-Organization-Id": str(org.id)}),
    )
    assert resp.status_code == 403


# --- per-organization roles ---


def test_admin_elsewhere_is_still_employee_here(client: TestClient) -> None:
    """An admin role in one organization grants nothing in another."""
    org_a = create_test_org("role-a")
    org_b = create_test_org("role-b")
    user_id = uuid4()
    add_test_member(org_a.id, user_id, Role.ADMIN, is_default=True)
    add_test_member(org_b.id, user_id, Role.EMPLOYEE)

    resp = client.get(
        "/v1/organization/settings",
        headers=auth(user_id, **{"X-Organization-Id": str(org_b.id)}),
    )
    assert resp.status_code == 403
    assert resp.json() == {"detail": "Insufficient permissions"}

    resp = client.get(
        "/v1/organization/settings",
        headers=auth(user_id, **{"X-Organization-Id": str(org_a.id)}),
    )
    assert resp.status_code == 200


def test_current_organization_reports_role_and_permissions(client: TestClient) -> None:
    org = create_test_org("summary-org")
    manager_id = uuid4()
    add_test_member(org.id, manager_id, Role.MANAGER, is_default=True)
    add_test_member(org.id, uuid4(), Role.EMPLOYEE)

    resp = client.get("/v1/organization", headers=auth(manager_id))
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["organization"]["slug"] == "summary-org"
    assert payload["role"] == "manager"
    assert payload["member_count"] == 2
    assert payload["permissions"]["canApproveLeave"] is True
    assert payload["permissions"]["canManageSettings"] is False
