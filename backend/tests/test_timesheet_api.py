from __future__ import annotations

from datetime import timedelta

import pytest

from hrportal.db.base import utctoday
from hrportal.models.enums import ProjectStatus, Role, TimesheetStatus


@pytest.fixture()
def employee_setup(make_user, make_project, assign):
    manager = make_user(Role.MANAGER)
    employee = make_user(Role.EMPLOYEE, manager=manager)
    project = make_project(name="Project Alpha", manager=manager)
    assign(employee, project)
    return manager, employee, project


def test_endpoints_require_authentication(client):
    for method, path in [
        ("get", "/api/timesheets"),
        ("post", "/api/timesheets"),
        ("get", "/api/timesheets/1"),
        ("get", "/api/manager/timesheets/pending"),
        ("get", "/api/hr/users"),
        ("get", "/api/admin/stats"),
    ]:
        response = getattr(client, method)(path)
        assert response.status_code == 401, path
        assert response.json()["success"] is False


def test_submit_and_read_back(client, auth_headers, employee_setup):
    _, employee, project = employee_setup
    headers = auth_headers(employee)

    response = client.post(
        "/api/timesheets",
        json={"project_id": project.id, "hours": 7.5, "description": "Database optimization"},
        headers=headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Timesheet submitted"
    created = body["data"]
    assert created["status"] == "PENDING"
    assert created["work_date"] == utctoday().isoformat()
    assert created["user"]["id"] == employee.id
    assert created["project"]["name"] == "Project Alpha"
    assert created["can_be_modified"] is True
    assert "hashed_password" not in created["user"]

    fetched = client.get(f"/api/timesheets/{created['id']}", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["data"]["hours"] == 7.5


def test_submit_validation_failures_return_field_map(client, auth_headers, employee_setup):
    _, employee, project = employee_setup
    response = client.post(
        "/api/timesheets",
        json={
            "project_id": project.id,
            "hours": 30,
            "work_date": (utctoday() + timedelta(days=1)).isoformat(),
        },
        headers=auth_headers(employee),
    )
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert set(body["data"]) == {"hours", "work_date"}

    missing_hours = client.post("/api/timesheets", json={"project_id": project.id}, headers=auth_headers(employee))
    assert missing_hours.status_code == 400
    assert "hours" in missing_hours.json()["data"]


def test_submit_to_unassigned_project_is_forbidden(client, auth_headers, employee_setup, make_project):
    _, employee, _ = employee_setup
    other = make_project(name="Project Beta")
    response = client.post("/api/timesheets", json={"project_id": other.id, "hours": 8}, headers=auth_headers(employee))
    assert response.status_code == 403


def test_own_list_is_newest_first_and_filterable(client, auth_headers, employee_setup, make_timesheet):
    _, employee, project = employee_setup
    today = utctoday()
    older = make_timesheet(employee, project, work_date=today - timedelta(days=3))
    newest = make_timesheet(employee, project, work_date=today)
    approved = make_timesheet(employee, project, work_date=today - timedelta(days=1), status=TimesheetStatus.APPROVED)

    response = client.get("/api/timesheets", headers=auth_headers(employee))
    assert response.status_code == 200
    assert [row["id"] for row in response.json()["data"]] == [newest.id, approved.id, older.id]

    pending = client.get("/api/timesheets", params={"status": "PENDING"}, headers=auth_headers(employee))
    assert [row["id"] for row in pending.json()["data"]] == [newest.id, older.id]


def test_other_employee_cannot_view_or_edit(client, auth_headers, employee_setup, make_user, make_timesheet):
    _, employee, project = employee_setup
    ts = make_timesheet(employee, project)
    stranger = make_user(Role.EMPLOYEE)

    assert client.get(f"/api/timesheets/{ts.id}", headers=auth_headers(stranger)).status_code == 403
    assert client.put(f"/api/timesheets/{ts.id}", json={"hours": 2}, headers=auth_headers(stranger)).status_code == 403
    assert client.delete(f"/api/timesheets/{ts.id}", headers=auth_headers(stranger)).status_code == 403


def test_hr_and_manager_can_view(client, auth_headers, employee_setup, make_user, make_timesheet):
    manager, employee, project = employee_setup
    ts = make_timesheet(employee, project)
    hr = make_user(Role.HR)

    assert client.get(f"/api/timesheets/{ts.id}", headers=auth_headers(hr)).status_code == 200
    assert client.get(f"/api/timesheets/{ts.id}", headers=auth_headers(manager)).status_code == 200


def test_update_and_delete_pending(client, auth_headers, employee_setup, make_timesheet):
    _, employee, project = employee_setup
    ts = make_timesheet(employee, project)
    headers = auth_headers(employee)

    updated = client.put(f"/api/timesheets/{ts.id}", json={"hours": 6, "notes": "fixed"}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["data"]["hours"] == 6
    assert updated.json()["data"]["notes"] == "fixed"

    deleted = client.delete(f"/api/timesheets/{ts.id}", headers=headers)
    assert deleted.status_code == 200
    assert deleted.json() == {"success": True, "message": "Timesheet deleted", "data": None}
    assert client.get(f"/api/timesheets/{ts.id}", headers=headers).status_code == 404


def test_reviewed_timesheet_is_locked(client, auth_headers, employee_setup, make_timesheet):
    _, employee, project = employee_setup
    ts = make_timesheet(employee, project, status=TimesheetStatus.APPROVED)
    headers = auth_headers(employee)

    update = client.put(f"/api/timesheets/{ts.id}", json={"hours": 2}, headers=headers)
    assert update.status_code == 409
    assert update.json()["success"] is False
    assert client.delete(f"/api/timesheets/{ts.id}", headers=headers).status_code == 409


def test_missing_timesheet_is_404(client, auth_headers, employee_setup):
    _, employee, _ = employee_setup
    response = client.get("/api/timesheets/9999", headers=auth_headers(employee))
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Timesheet not found", "data": None}


def test_submittable_projects_per_role(client, auth_headers, employee_setup, make_project, make_user):
    manager, employee, project = employee_setup
    make_project(name="Project Beta")
    make_project(name="Project Closed", status=ProjectStatus.COMPLETED)

    own = client.get("/api/timesheets/projects", headers=auth_headers(employee))
    assert [p["name"] for p in own.json()["data"]] == ["Project Alpha"]

    for_manager = client.get("/api/timesheets/projects", headers=auth_headers(manager))
    assert [p["name"] for p in for_manager.json()["data"]] == ["Project Alpha", "Project Beta"]

    hr = make_user(Role.HR)
    assert client.get("/api/timesheets/projects", headers=auth_headers(hr)).json()["data"] == []
