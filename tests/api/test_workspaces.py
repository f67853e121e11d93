"""Workspace switching, default selection and the active-organization cookie."""

from __future__ import annotations

from uuid import uuid4

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from leavedesk.api.dependencies import ORG_COOKIE
from leavedesk.main import app
from leavedesk.models.organization import Role
from leavedesk.services import token_service
from tests.conftest import (
    add_test_member,
    auth,
    create_test_org,
    deactivate_member,
    get_membership,
)


def _user_in_two_orgs():
    """User is admin (default) in org1 and employee in org2."""
    org1 = create_test_org("org-one")
    org2 = create_test_org("org-two")
    user_id = uuid4()
    add_test_member(org1.id, user_id, Role.ADMIN, is_default=True)
    add_test_member(org2.id, user_id, Role.EMPLOYEE)
    return org1, org2, user_id


def _current(client: TestClient, user_id, **headers) -> dict:
    resp = client.get("/v1/workspaces/current", headers=auth(user_id, **headers))
    assert resp.status_code == 200, resp.json()
    return resp.json()


def _switches(result: str) -> float:
    return REGISTRY.get_sample_value("workspace_switches_total", {"result": result}) or 0.0


# ---- switching ----


def test_switch_sets_cookie_and_next_request_follows_it(client: TestClient) -> None:
    org1, org2, user_id = _user_in_two_orgs()
    assert _current(client, user_id)["organization_id"] == str(org1.id)

    resp = client.post(
        "/v1/workspaces/switch",
        json={"organization_id": str(org2.id)},
        headers=auth(user_id),
    )
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "organization_id": str(org2.id)}

    set_cookie = resp.headers["set-cookie"].lower()
    assert f"{ORG_COOKIE}=" in set_cookie
    assert "httponly" in set_cookie
    assert "samesite=lax" in set_cookie
    assert "path=/" in set_cookie

    current = _current(client, user_id)
    assert current["organization_id"] == str(org2.id)
    assert current["role"] == "employee"
    assert current["permissions"]["canApproveLeave"] is False


def test_switch_does_not_move_the_default(client: TestClient) -> None:
    org1, org2, user_id = _user_in_two_orgs()
    client.post(
        "/v1/workspaces/switch", json={"organization_id": str(org2.id)}, headers=auth(user_id)
    )
    assert get_membership(org1.id, user_id).is_default is True
    assert get_membership(org2.id, user_id).is_default is False


def test_failed_switch_keeps_previous_pointer(client: TestClient) -> None:
    _, org2, user_id = _user_in_two_orgs()
    stranger_org = create_test_org("not-mine")
    client.post(
        "/v1/workspaces/switch", json={"organization_id": str(org2.id)}, headers=auth(user_id)
    )
    rejected_before = _switches("rejected")

    resp = client.post(
        "/v1/workspaces/switch",
        json={"organization_id": str(stranger_org.id)},
        headers=auth(user_id),
    )
    assert resp.status_code == 403
    assert resp.json() == {"detail": "Organization access denied"}
    assert "set-cookie" not in resp.headers
    assert _switches("rejected") - rejected_before == 1

    assert _current(client, user_id)["organization_id"] == str(org2.id)


def test_switch_rejects_malformed_id(client: TestClient) -> None:
    _, _, user_id = _user_in_two_orgs()
    resp = client.post(
        "/v1/workspaces/switch", json={"organization_id": "org-2"}, headers=auth(user_id)
    )
    assert resp.status_code == 422
    assert resp.json() == {"detail": "organization_id must be a UUID"}


def test_switch_accepts_padded_and_uppercase_id(client: TestClient) -> None:
    """The id echoed back and put in the pointer is the normalized one."""
    _, org2, user_id = _user_in_two_orgs()
    resp = client.post(
        "/v1/workspaces/switch",
        json={"organization_id": f"  {str(org2.id).upper()} "},
        headers=auth(user_id),
    )
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "organization_id": str(org2.id)}
    assert f"{ORG_COOKIE}=" in resp.headers["set-cookie"]
    assert _current(client, user_id)["organization_id"] == str(org2.id)


def test_switch_requires_authentication(client: TestClient) -> None:
    org1, _, _ = _user_in_two_orgs()
    resp = client.post("/v1/workspaces/switch", json={"organization_id": str(org1.id)})
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"


def test_switch_is_counted(client: TestClient) -> None:
    _, org2, user_id = _user_in_two_orgs()
    before = _switches("switched")
    client.post(
        "/v1/workspaces/switch", json={"organization_id": str(org2.id)}, headers=auth(user_id)
    )
    assert _switches("switched") - before == 1


# ---- pointer semantics ----


def test_two_sessions_keep_independent_pointers() -> None:
    """Switching in one browser tab does not move another tab."""
    org1, org2, user_id = _user_in_two_orgs()
    tab_a = TestClient(app)
    tab_b = TestClient(app)

    tab_a.post(
        "/v1/workspaces/switch", json={"organization_id": str(org2.id)}, headers=auth(user_id)
    )
    assert _current(tab_a, user_id)["organization_id"] == str(org2.id)
    assert _current(tab_b, user_id)["organization_id"] == str(org1.id)


def test_explicit_header_beats_pointer(client: TestClient) -> None:
    org1, org2, user_id = _user_in_two_orgs()
    client.post(
        "/v1/workspaces/switch", json={"organization_id": str(org2.id)}, headers=auth(user_id)
    )
    current = _current(client, user_id, **{"X-Organization-Id": str(org1.id)})
    assert current["organization_id"] == str(org1.id)
    assert current["role"] == "admin"


def test_stale_pointer_fails_until_cleared(client: TestClient) -> None:
    org1, org2, user_id = _user_in_two_orgs()
    client.post(
        "/v1/workspaces/switch", json={"organization_id": str(org2.id)}, headers=auth(user_id)
    )
    deactivate_member(org2.id, user_id)

    resp = client.get("/v1/workspaces/current", headers=auth(user_id))
    assert resp.status_code == 403
    assert resp.json() == {"detail": "Organization access denied"}

    resp = client.post("/v1/workspaces/clear", headers=auth(user_id))
    assert resp.status_code == 204
    assert client.cookies.get(ORG_COOKIE) is None
    assert _current(client, user_id)["organization_id"] == str(org1.id)


def test_pointer_of_another_user_is_ignored(client: TestClient) -> None:
    org1, org2, user_id = _user_in_two_orgs()
    other_user = uuid4()
    add_test_member(org2.id, other_user, Role.ADMIN, is_default=True)
    stolen = token_service.create_org_pointer(sub=str(other_user), organization_id=str(org2.id))

    current = _current(client, user_id, Cookie=f"{ORG_COOKIE}={stolen}")
    assert current["organization_id"] == str(org1.id)


def test_forged_pointer_is_ignored(client: TestClient) -> None:
    org1, org2, user_id = _user_in_two_orgs()
    current = _current(client, user_id, Cookie=f"{ORG_COOKIE}={org2.id}")
    assert current["organization_id"] == str(org1.id)


def test_no_default_and_no_hint_is_400(client: TestClient) -> None:
    org = create_test_org("no-default")
    user_id = uuid4()
    add_test_member(org.id, user_id, Role.EMPLOYEE)

    resp = client.get("/v1/workspaces/current", headers=auth(user_id))
    assert resp.status_code == 400
    assert resp.json() == {"detail": "No organization context"}


# ---- listing and default ----


def test_list_workspaces(client: TestClient) -> None:
    org1, org2, user_id = _user_in_two_orgs()
    revoked = create_test_org("org-three")
    add_test_member(revoked.id, user_id, Role.ADMIN, is_active=False)

    resp = client.get("/v1/workspaces", headers=auth(user_id))
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["current_organization_id"] == str(org1.id)
    assert [w["slug"] for w in payload["workspaces"]] == ["org-one", "org-two"]
    assert payload["workspaces"][0] == {
        "organization_id": str(org1.id),
        "name": "Org One",
        "slug": "org-one",
        "role": "admin",
        "is_default": True,
    }


def test_list_workspaces_without_resolvable_context(client: TestClient) -> None:
    org = create_test_org("lonely")
    user_id = uuid4()
    add_test_member(org.id, user_id, Role.EMPLOYEE)

    resp = client.get("/v1/workspaces", headers=auth(user_id))
    assert resp.status_code == 200
    assert resp.json()["current_organization_id"] is None
    assert len(resp.json()["workspaces"]) == 1


def test_set_default(client: TestClient) -> None:
    org1, org2, user_id = _user_in_two_orgs()
    resp = client.post(
        "/v1/workspaces/default", json={"organization_id": str(org2.id)}, headers=auth(user_id)
    )
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "organization_id": str(org2.id)}
    assert get_membership(org1.id, user_id).is_default is False
    assert get_membership(org2.id, user_id).is_default is True
    assert _current(client, user_id)["organization_id"] == str(org2.id)


def test_set_default_to_foreign_org_denied(client: TestClient) -> None:
    org1, _, user_id = _user_in_two_orgs()
    stranger_org = create_test_org("not-mine")
    resp = client.post(
        "/v1/workspaces/default",
        json={"organization_id": str(stranger_org.id)},
        headers=auth(user_id),
    )
    assert resp.status_code == 403
    assert get_membership(org1.id, user_id).is_default is True


# ---- deletion ----


def test_admin_deletes_workspace_and_members_lose_access(client: TestClient) -> None:
    org1, org2, user_id = _user_in_two_orgs()
    colleague = uuid4()
    add_test_member(org1.id, colleague, Role.EMPLOYEE, is_default=True)
    client.post(
        "/v1/workspaces/switch", json={"organization_id": str(org1.id)}, headers=auth(user_id)
    )

    resp = client.delete(f"/v1/workspaces/{org1.id}", headers=auth(user_id))
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "organization_id": str(org1.id),
        "memberships_revoked": 2,
    }
    assert client.cookies.get(ORG_COOKIE) is None

    resp = client.get(
        "/v1/organization", headers=auth(colleague, **{"X-Organization-Id": str(org1.id)})
    )
    assert resp.status_code == 403

    workspaces = client.get("/v1/workspaces", headers=auth(user_id)).json()["workspaces"]
    assert [w["organization_id"] for w in workspaces] == [str(org2.id)]
