from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import uuid4

from fastapi.testclient import TestClient

from leavedesk.models.organization import Role
from tests.conftest import add_test_leave, add_test_member, auth, create_test_org


def _team():
    """One org with an admin, a manager and two employees, all defaulting to it."""
    org = create_test_org("leave-org")
    people = {}
    for name, role in (
        ("admin", Role.ADMIN),
        ("manager", Role.MANAGER),
        ("alice", Role.EMPLOYEE),
        ("bob", Role.EMPLOYEE),
    ):
        people[name] = uuid4()
        add_test_member(org.id, people[name], role, is_default=True)
    return org, people


def _future(days: int) -> str:
    return (datetime.now(UTC).date() + timedelta(days=days)).isoformat()


# ---- create / list / read ----


def test_employee_creates_own_request(client: TestClient) -> None:
    _, people = _team()
    resp = client.post(
        "/v1/leave-requests",
        json={"start_date": _future(20), "end_date": _future(24), "reason": "Trip"},
        headers=auth(people["alice"]),
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["user_id"] == str(people["alice"])
    assert body["status"] == "pending"
    assert body["days_requested"] == 5
    assert body["reason"] == "Trip"


def test_end_before_start_rejected(client: TestClient) -> None:
    _, people = _team()
    resp = client.post(
        "/v1/leave-requests",
        json={"start_date": _future(20), "end_date": _future(19)},
        headers=auth(people["alice"]),
    )
    assert resp.status_code == 422


def test_explicit_days_requested_kept(client: TestClient) -> None:
    _, people = _team()
    resp = client.post(
        "/v1/leave-requests",
        json={"start_date": _future(20), "end_date": _future(26), "days_requested": 5},
        headers=auth(people["alice"]),
    )
    assert resp.json()["days_requested"] == 5


def test_own_scope_lists_only_callers_requests(client: TestClient) -> None:
    org, people = _team()
    mine = add_test_leave(org.id, people["alice"])
    add_test_leave(org.id, people["bob"])

    resp = client.get("/v1/leave-requests", headers=auth(people["alice"]))
    assert [r["id"] for r in resp.json()] == [str(mine.id)]

    resp = client.get("/v1/leave-requests?scope=all", headers=auth(people["manager"]))
    assert len(resp.json()) == 2


def test_status_filter(client: TestClient) -> None:
    org, people = _team()
    add_test_leave(org.id, people["alice"])
    approved = add_test_leave(org.id, people["bob"], status="approved")
    resp = client.get(
        "/v1/leave-requests?scope=all&status=approved", headers=auth(people["admin"])
    )
    assert [r["id"] for r in resp.json()] == [str(approved.id)]


def test_employee_cannot_read_colleagues_request(client: TestClient) -> None:
    org, people = _team()
    bobs = add_test_leave(org.id, people["bob"])
    resp = client.get(f"/v1/leave-requests/{bobs.id}", headers=auth(people["alice"]))
    assert resp.status_code == 403
    assert resp.json() == {"detail": "Insufficient permissions"}

    resp = client.get(f"/v1/leave-requests/{bobs.id}", headers=auth(people["manager"]))
    assert resp.status_code == 200


# ---- review ----


def test_manager_approves(client: TestClient) -> None:
    org, people = _team()
    leave = add_test_leave(org.id, people["alice"])
    resp = client.post(
        f"/v1/leave-requests/{leave.id}/review",
        json={"action": "approve", "comment": "Enjoy"},
        headers=auth(people["manager"]),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "approved"
    assert body["reviewed_by"] == str(people["manager"])
    assert body["review_comment"] == "Enjoy"
    assert body["reviewed_at"] is not None


def test_employee_cannot_review(client: TestClient) -> None:
    org, people = _team()
    leave = add_test_leave(org.id, people["bob"])
    resp = client.post(
        f"/v1/leave-requests/{leave.id}/review",
        json={"action": "approve"},
        headers=auth(people["alice"]),
    )
    assert resp.status_code == 403


def test_only_pending_can_be_reviewed(client: TestClient) -> None:
    org, people = _team()
    leave = add_test_leave(org.id, people["alice"], status="approved")
    resp = client.post(
        f"/v1/leave-requests/{leave.id}/review",
        json={"action": "reject"},
        headers=auth(people["admin"]),
    )
    assert resp.status_code == 400


# ---- edit ----


def test_owner_edits_future_request(client: TestClient) -> None:
    org, people = _team()
    leave = add_test_leave(org.id, people["alice"])
    resp = client.put(
        f"/v1/leave-requests/{leave.id}",
        json={"start_date": _future(30), "end_date": _future(31)},
        headers=auth(people["alice"]),
    )
    assert resp.status_code == 200
    assert resp.json()["start_date"] == _future(30)
    assert resp.json()["edited_by"] is None


def test_owner_cannot_edit_started_request(client: TestClient) -> None:
    org, people = _team()
    leave = add_test_leave(org.id, people["alice"], starts_in_days=0)
    resp = client.put(
        f"/v1/leave-requests/{leave.id}",
        json={"start_date": _future(30), "end_date": _future(31)},
        headers=auth(people["alice"]),
    )
    assert resp.status_code == 400


def test_editing_rejected_request_resubmits_it(client: TestClient) -> None:
    org, people = _team()
    leave = add_test_leave(org.id, people["alice"], status="rejected")
    resp = client.put(
        f"/v1/leave-requests/{leave.id}",
        json={"start_date": _future(40), "end_date": _future(41)},
        headers=auth(people["alice"]),
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "pending"
    assert resp.json()["reviewed_by"] is None


def test_reviewer_edit_of_others_request_is_stamped(client: TestClient) -> None:
    org, people = _team()
    leave = add_test_leave(org.id, people["alice"], starts_in_days=0)
    resp = client.put(
        f"/v1/leave-requests/{leave.id}",
        json={"start_date": _future(1), "end_date": _future(2)},
        headers=auth(people["manager"]),
    )
    assert resp.status_code == 200
    assert resp.json()["edited_by"] == str(people["manager"])
    assert resp.json()["edited_at"] is not None


def test_cancelled_request_cannot_be_edited(client: TestClient) -> None:
    org, people = _team()
    leave = add_test_leave(org.id, people["alice"], status="cancelled")
    resp = client.put(
        f"/v1/leave-requests/{leave.id}",
        json={"start_date": _future(30), "end_date": _future(31)},
        headers=auth(people["admin"]),
    )
    assert resp.status_code == 400


def test_employee_cannot_edit_colleagues_request(client: TestClient) -> None:
    org, people = _team()
    leave = add_test_leave(org.id, people["bob"])
    resp = client.put(
        f"/v1/leave-requests/{leave.id}",
        json={"start_date": _future(30), "end_date": _future(31)},
        headers=auth(people["alice"]),
    )
    assert resp.status_code == 403


# ---- cancel ----


def test_owner_cancels_pending(client: TestClient) -> None:
    org, people = _team()
    leave = add_test_leave(org.id, people["alice"])
    resp = client.delete(f"/v1/leave-requests/{leave.id}", headers=auth(people["alice"]))
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"


def test_owner_cannot_cancel_approved(client: TestClient) -> None:
    org, people = _team()
    leave = add_test_leave(org.id, people["alice"], status="approved")
    resp = client.delete(f"/v1/leave-requests/{leave.id}", headers=auth(people["alice"]))
    assert resp.status_code == 400


def test_manager_cancels_approved(client: TestClient) -> None:
    org, people = _team()
    leave = add_test_leave(org.id, people["alice"], status="approved")
    resp = client.delete(f"/v1/leave-requests/{leave.id}", headers=auth(people["manager"]))
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"


def test_employee_cannot_cancel_colleagues_request(client: TestClient) -> None:
    org, people = _team()
    leave = add_test_leave(org.id, people["bob"])
    resp = client.delete(f"/v1/leave-requests/{leave.id}", headers=auth(people["alice"]))
    assert resp.status_code == 403
    still = client.get(f"/v1/leave-requests/{leave.id}", headers=auth(people["bob"]))
    assert still.json()["status"] == "pending"
