from __future__ import annotations

import pytest

from hrportal.models.enums import Role
from hrportal.models.user import User


@pytest.fixture()
def admin(make_user):
    return make_user(Role.ADMIN, name="System Admin")


def test_admin_creates_user_with_manager(client, auth_headers, admin, make_user):
    manager = make_user(Role.MANAGER)
    response = client.post(
        "/api/admin/users",
        json={
            "name": "New Hire",
            "email": "new.hire@example.com",
            "password": "welcome1",
            "role": "EMPLOYEE",
            "employee_id": "EMP900",
            "manager_id": manager.id,
        },
        headers=auth_headers(admin),
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["manager_id"] == manager.id
    assert data["employee_id"] == "EMP900"
    assert "hashed_password" not in data

    clash = client.post(
        "/api/admin/users",
        json={"name": "Other", "email": "other@example.com", "password": "welcome1", "employee_id": "EMP900"},
        headers=auth_headers(admin),
    )
    assert clash.status_code == 409


@pytest.mark.parametrize("role", [Role.HR, Role.MANAGER, Role.EMPLOYEE])
def test_user_administration_is_admin_only(client, auth_headers, make_user, role):
    user = make_user(role)
    headers = auth_headers(user)
    assert client.get("/api/admin/users", headers=headers).status_code == 403
    assert client.get("/api/admin/stats", headers=headers).status_code == 403
    created = client.post(
        "/api/admin/users",
        json={"name": "Sneaky", "email": "sneaky@example.com", "password": "welcome1", "role": "ADMIN"},
        headers=headers,
    )
    assert created.status_code == 403


def test_update_user_fields(client, auth_headers, admin, make_user):
    user = make_user(Role.EMPLOYEE)
    response = client.put(
        f"/api/admin/users/{user.id}",
        json={"job_title": "Senior Engineer", "role": "MANAGER", "password": "rotated1"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["job_title"] == "Senior Engineer"
    assert data["role"] == "MANAGER"


def test_manager_with_reports_needs_explicit_handover(client, auth_headers, admin, make_user, db):
    manager = make_user(Role.MANAGER)
    successor = make_user(Role.MANAGER)
    reports = [make_user(Role.EMPLOYEE, manager=manager) for _ in range(2)]
    headers = auth_headers(admin)

    blocked = client.post(f"/api/admin/users/{manager.id}/deactivate", headers=headers)
    assert blocked.status_code == 409
    demoted = client.put(f"/api/admin/users/{manager.id}", json={"role": "EMPLOYEE"}, headers=headers)
    assert demoted.status_code == 409

    moved = client.post(
        f"/api/admin/users/{manager.id}/deactivate",
        json={"reassign_to": successor.id},
        headers=headers,
    )
    assert moved.status_code == 200
    assert moved.json()["data"]["is_active"] is False
    for report in reports:
        db.refresh(report)
        assert report.manager_id == successor.id


def test_orphaning_reports_on_deactivate(client, auth_headers, admin, make_user, db):
    manager = make_user(Role.MANAGER)
    report = make_user(Role.EMPLOYEE, manager=manager)

    response = client.post(
        f"/api/admin/users/{manager.id}/deactivate",
        json={"orphan": True},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200
    db.refresh(report)
    assert report.manager_id is None


def test_deactivated_user_loses_access_until_reactivated(client, auth_headers, admin, make_user):
    user = make_user(Role.EMPLOYEE)
    headers = auth_headers(admin)

    assert client.post(f"/api/admin/users/{user.id}/deactivate", headers=headers).status_code == 200
    assert client.get("/api/auth/me", headers=auth_headers(user)).status_code == 401

    assert client.post(f"/api/admin/users/{user.id}/activate", headers=headers).status_code == 200
    assert client.get("/api/auth/me", headers=auth_headers(user)).status_code == 200


def test_admin_cannot_deactivate_or_delete_self(client, auth_headers, admin):
    headers = auth_headers(admin)
    assert client.post(f"/api/admin/users/{admin.id}/deactivate", headers=headers).status_code == 403
    assert client.delete(f"/api/admin/users/{admin.id}", headers=headers).status_code == 403


def test_delete_user(client, auth_headers, admin, make_user, make_project, make_timesheet, db):
    idle = make_user(Role.EMPLOYEE)
    busy = make_user(Role.EMPLOYEE)
    make_timesheet(busy, make_project())
    headers = auth_headers(admin)

    assert client.delete(f"/api/admin/users/{busy.id}", headers=headers).status_code == 409
    assert client.delete(f"/api/admin/users/{idle.id}", headers=headers).status_code == 200
    assert db.get(User, idle.id) is None
    assert client.delete(f"/api/admin/users/{idle.id}", headers=headers).status_code == 404


def test_delete_manager_orphans_reports(client, auth_headers, admin, make_user, db):
    manager = make_user(Role.MANAGER)
    report = make_user(Role.EMPLOYEE, manager=manager)
    headers = auth_headers(admin)

    assert client.delete(f"/api/admin/users/{manager.id}", headers=headers).status_code == 409
    response = client.delete(f"/api/admin/users/{manager.id}", params={"orphan": True}, headers=headers)
    assert response.status_code == 200
    db.refresh(report)
    assert report.manager_id is None


def test_stats(client, auth_headers, admin, make_user, make_project, make_timesheet):
    employee = make_user(Role.EMPLOYEE)
    make_user(Role.EMPLOYEE, is_active=False)
    make_user(Role.HR)
    make_timesheet(employee, make_project())

    response = client.get("/api/admin/stats", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["data"] == {
        "total_users": 4,
        "active_users": 3,
        "inactive_users": 1,
        "by_role": {"ADMIN": 1, "HR": 1, "MANAGER": 0, "EMPLOYEE": 2},
        "total_projects": 1,
        "pending_timesheets": 1,
    }


def test_admin_lists_all_timesheets(client, auth_headers, admin, make_user, make_project, make_timesheet):
    employee = make_user(Role.EMPLOYEE)
    make_timesheet(employee, make_project())
    response = client.get("/api/admin/timesheets", headers=auth_headers(admin))
    assert response.status_code == 200
    assert len(response.json()["data"]) == 1


def test_manager_with_inactive_reports_cannot_be_demoted(client, auth_headers, admin, make_user, db):
    manager = make_user(Role.MANAGER)
    report = make_user(Role.EMPLOYEE, manager=manager, is_active=False)
    headers = auth_headers(admin)

    demoted = client.put(f"/api/admin/users/{manager.id}", json={"role": "EMPLOYEE"}, headers=headers)
    assert demoted.status_code == 409

    assert client.post(f"/api/admin/users/{report.id}/activate", headers=headers).status_code == 200
    db.refresh(report)
    db.refresh(manager)
    assert report.manager_id == manager.id
    assert manager.role == Role.MANAGER


def test_reactivation_drops_link_to_inactive_manager(client, auth_headers, admin, make_user, db):
    manager = make_user(Role.MANAGER, is_active=False)
    report = make_user(Role.EMPLOYEE, manager=manager, is_active=False)
    headers = auth_headers(admin)

    response = client.post(f"/api/admin/users/{report.id}/activate", headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["manager_id"] is None

    other = make_user(Role.EMPLOYEE, manager=manager, is_active=False)
    via_update = client.put(f"/api/admin/users/{other.id}", json={"is_active": True}, headers=headers)
    assert via_update.status_code == 200
    assert via_update.json()["data"]["manager_id"] is None


def test_assigned_employee_keeps_role_until_assignments_end(
    client, auth_headers, admin, make_user, make_project, assign
):
    employee = make_user(Role.EMPLOYEE)
    assignment = assign(employee, make_project())
    headers = auth_headers(admin)

    blocked = client.put(f"/api/admin/users/{employee.id}", json={"role": "MANAGER"}, headers=headers)
    assert blocked.status_code == 409

    ended = client.put(f"/api/hr/assignments/{assignment.id}", json={"is_active": False}, headers=headers)
    assert ended.status_code == 200
    promoted = client.put(f"/api/admin/users/{employee.id}", json={"role": "MANAGER"}, headers=headers)
    assert promoted.status_code == 200
    assert promoted.json()["data"]["role"] == "MANAGER"

    reopened = client.put(f"/api/hr/assignments/{assignment.id}", json={"is_active": True}, headers=headers)
    assert reopened.status_code == 400
