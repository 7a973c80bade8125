"""HTTP surface: routing, identity header and domain-error mapping."""

import uuid
from datetime import date
from decimal import Decimal

from timeledger.models.timesheet import TimesheetStatus


def as_user(user) -> dict:
    return {"X-User-Id": str(user.user_id)}


def _create(client, world, hours="8", description="dev work", work_date="2024-01-10"):
    return client.post(
        "/api/v1/timesheets/",
        json={
            "project_id": str(world.project_a.project_id),
            "work_date": work_date,
            "hours": hours,
            "description": description,
            "task_type": "qa",
        },
        headers=as_user(world.employee),
    )


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_identity_header_required(client, world):
    assert client.get("/api/v1/timesheets/?from=2024-01-01&to=2024-01-31").status_code == 401
    bad = client.get("/api/v1/timesheets/?from=2024-01-01&to=2024-01-31", headers={"X-User-Id": "nope"})
    assert bad.status_code == 400
    stranger = client.get(
        "/api/v1/timesheets/?from=2024-01-01&to=2024-01-31", headers={"X-User-Id": str(uuid.uuid4())}
    )
    assert stranger.status_code == 401
    assert client.get(
        "/api/v1/timesheets/?from=2024-01-01&to=2024-01-31", headers=as_user(world.former)
    ).status_code == 401


def test_entry_lifecycle_over_http(client, world):
    created = _create(client, world)
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "DRAFT"
    assert body["task_type"] == "qa"
    assert Decimal(body["hours"]) == Decimal("8")
    entry_id = body["entry_id"]

    listed = client.get("/api/v1/timesheets/?from=2024-01-01&to=2024-01-31", headers=as_user(world.employee))
    assert [e["entry_id"] for e in listed.json()] == [entry_id]

    updated = client.put(
        f"/api/v1/timesheets/{entry_id}",
        json={"hours": "7.5", "description": "dev work, PROJ-7"},
        headers=as_user(world.employee),
    )
    assert updated.status_code == 200
    assert Decimal(updated.json()["hours"]) == Decimal("7.5")

    submitted = client.post(f"/api/v1/timesheets/{entry_id}/submit", headers=as_user(world.employee))
    assert submitted.json()["status"] == "SUBMITTED"

    pending = client.get("/api/v1/approvals/pending?from=2024-01-01&to=2024-01-31", headers=as_user(world.approver))
    assert [e["entry_id"] for e in pending.json()] == [entry_id]

    approved = client.post(f"/api/v1/approvals/{entry_id}/approve", headers=as_user(world.approver))
    assert approved.status_code == 200
    assert approved.json()["approved_by"] == str(world.approver.user_id)


def test_error_mapping(client, world):
    entry_id = _create(client, world).json()["entry_id"]

    cap = _create(client, world, hours="6")
    assert cap.status_code == 422
    assert cap.json()["error"] == "daily_cap_exceeded"

    invalid = _create(client, world, hours="25", work_date="2024-01-11")
    assert invalid.status_code == 400
    assert invalid.json()["error"] == "validation_error"

    missing = client.get(f"/api/v1/timesheets/{uuid.uuid4()}", headers=as_user(world.employee))
    assert missing.status_code == 404

    forbidden = client.post(f"/api/v1/timesheets/{entry_id}/submit", headers=as_user(world.employee2))
    assert forbidden.status_code == 403

    state = client.post(f"/api/v1/approvals/{entry_id}/approve", headers=as_user(world.approver))
    assert state.status_code == 409
    body = state.json()
    assert body["error"] == "invalid_state"
    assert body["status"] == "DRAFT"
    assert body["action"] == "APPROVE"
    assert body["entry_id"] == entry_id


def test_reject_requires_comment(client, world):
    entry_id = _create(client, world).json()["entry_id"]
    client.post(f"/api/v1/timesheets/{entry_id}/submit", headers=as_user(world.employee))

    blank = client.post(f"/api/v1/approvals/{entry_id}/reject", json={"comment": ""}, headers=as_user(world.approver))
    assert blank.status_code == 400

    ok = client.post(
        f"/api/v1/approvals/{entry_id}/reject", json={"comment": "wrong project"}, headers=as_user(world.approver)
    )
    assert ok.json()["status"] == "REJECTED"
    assert ok.json()["approver_comment"] == "wrong project"


def test_delete(client, world):
    entry_id = _create(client, world).json()["entry_id"]
    assert client.delete(f"/api/v1/timesheets/{entry_id}", headers=as_user(world.employee2)).status_code == 404
    assert client.delete(f"/api/v1/timesheets/{entry_id}", headers=as_user(world.employee)).json() == {"ok": True}


def test_lock_and_unlock(client, world, make_entry):
    make_entry(world.employee, world.project_a, date(2024, 1, 2), status=TimesheetStatus.APPROVED)
    body = {"from": "2024-01-01", "to": "2024-01-07", "project_id": str(world.project_a.project_id)}

    preview = client.post("/api/v1/locks", json={**body, "preview": True}, headers=as_user(world.approver))
    assert preview.status_code == 200
    assert preview.json() == {
        "from": "2024-01-01",
        "to": "2024-01-07",
        "scope": {"project_id": str(world.project_a.project_id), "user_id": None},
        "preview": True,
        "affected_count": 1,
    }

    locked = client.post("/api/v1/locks", json=body, headers=as_user(world.approver))
    assert locked.json()["affected_count"] == 1

    no_reason = client.post("/api/v1/unlocks", json=body, headers=as_user(world.approver))
    assert no_reason.status_code == 400

    unlocked = client.post("/api/v1/unlocks", json={**body, "reason": "fix"}, headers=as_user(world.approver))
    assert unlocked.json()["affected_count"] == 1

    denied = client.post("/api/v1/locks", json=body, headers=as_user(world.employee))
    assert denied.status_code == 403


def test_reports_are_admin_only(client, world, make_entry):
    make_entry(world.employee, world.project_a, date(2024, 1, 2), "13")
    query = "?from=2024-01-01&to=2024-01-05"

    assert client.get(f"/api/v1/reports/overtime{query}", headers=as_user(world.approver)).status_code == 403

    report = client.get(f"/api/v1/reports/overtime{query}", headers=as_user(world.admin)).json()
    assert report["summary"]["total_overtime_days"] == 1
    assert report["rows"][0]["user_name"] == "Asha Rao"

    missing = client.get(f"/api/v1/reports/missing-timesheets{query}", headers=as_user(world.admin)).json()
    assert missing["summary"]["working_days_in_range"] == 5

    csv_resp = client.get(f"/api/v1/reports/overtime.csv{query}", headers=as_user(world.admin))
    assert csv_resp.headers["content-type"].startswith("text/csv")
    assert "overtime_20240101_20240105.csv" in csv_resp.headers["content-disposition"]
    assert csv_resp.text.splitlines()[0] == "user_id,user_name,date,total_hours"


def test_single_entry_read_is_restricted(client, world):
    entry_id = _create(client, world).json()["entry_id"]
    url = f"/api/v1/timesheets/{entry_id}"

    for reader in (world.employee, world.approver, world.admin):
        assert client.get(url, headers=as_user(reader)).status_code == 200
    for outsider in (world.employee2, world.approver2):
        assert client.get(url, headers=as_user(outsider)).status_code == 404


def test_utilization_report(client, world, make_entry):
    make_entry(world.employee, world.project_a, date(2024, 1, 2), "6", status=TimesheetStatus.APPROVED)
    make_entry(world.employee, world.project_b, date(2024, 1, 3), "2", status=TimesheetStatus.DRAFT)
    query = "?from=2024-01-01&to=2024-01-05"

    assert client.get(f"/api/v1/reports/utilization{query}", headers=as_user(world.approver)).status_code == 403

    report = client.get(f"/api/v1/reports/utilization{query}&group_by=user", headers=as_user(world.admin)).json()
    assert report["group_by"] == "user"
    assert [r["user_name"] for r in report["rows"]] == ["Asha Rao"]
    assert Decimal(report["summary"]["utilization_pct"]) == Decimal("100")

    bad = client.get(f"/api/v1/reports/utilization{query}&group_by=team", headers=as_user(world.admin))
    assert bad.status_code == 400

    csv_resp = client.get(f"/api/v1/reports/utilization.csv{query}", headers=as_user(world.admin))
    assert "utilization_20240101_20240105.csv" in csv_resp.headers["content-disposition"]
    assert csv_resp.text.splitlines()[1].startswith("project,,,")
