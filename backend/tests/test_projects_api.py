from __future__ import annotations

from hrportal.models.enums import Role


def test_hr_creates_project(client, auth_headers, make_user):
    hr = make_user(Role.HR)
    manager = make_user(Role.MANAGER, name="Mark Mensah")
    response = client.post(
        "/api/projects",
        json={
            "name": "Project Alpha",
            "description": "Customer portal rebuild",
            "start_date": "2026-01-01",
            "end_date": "2026-06-30",
            "status": "ACTIVE",
            "priority": "HIGH",
            "budget": "50000.00",
            "project_manager_id": manager.id,
        },
        headers=auth_headers(hr),
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["name"] == "Project Alpha"
    assert data["project_manager_name"] == "Mark Mensah"
    assert data["created_by_user_id"] == hr.id


def test_create_validation(client, auth_headers, make_user):
    hr = make_user(Role.HR)
    employee = make_user(Role.EMPLOYEE)
    headers = auth_headers(hr)

    bad_dates = client.post(
        "/api/projects",
        json={"name": "Backwards", "start_date": "2026-06-01", "end_date": "2026-01-01"},
        headers=headers,
    )
    assert bad_dates.status_code == 400

    bad_manager = client.post(
        "/api/projects",
        json={"name": "Orphaned", "project_manager_id": employee.id},
        headers=headers,
    )
    assert bad_manager.status_code == 400
    assert "project_manager_id" in bad_manager.json()["data"]


def test_employee_and_manager_cannot_create(client, auth_headers, make_user):
    for role in (Role.EMPLOYEE, Role.MANAGER):
        user = make_user(role)
        response = client.post("/api/projects", json={"name": "Nope"}, headers=auth_headers(user))
        assert response.status_code == 403


def test_project_visibility_per_role(client, auth_headers, make_user, make_project, assign):
    manager = make_user(Role.MANAGER)
    employee = make_user(Role.EMPLOYEE)
    owned = make_project(name="Owned", manager=manager)
    other = make_project(name="Other")
    assign(employee, owned)

    assert [p["name"] for p in client.get("/api/projects", headers=auth_headers(manager)).json()["data"]] == ["Owned"]
    assert [p["name"] for p in client.get("/api/projects", headers=auth_headers(employee)).json()["data"]] == ["Owned"]

    assert client.get(f"/api/projects/{owned.id}", headers=auth_headers(employee)).status_code == 200
    assert client.get(f"/api/projects/{other.id}", headers=auth_headers(employee)).status_code == 403
    assert client.get(f"/api/projects/{other.id}", headers=auth_headers(manager)).status_code == 403
    assert client.get("/api/projects/9999", headers=auth_headers(manager)).status_code == 404


def test_manager_updates_own_project_but_not_its_manager(client, auth_headers, make_user, make_project):
    manager = make_user(Role.MANAGER)
    successor = make_user(Role.MANAGER)
    project = make_project(manager=manager)
    headers = auth_headers(manager)

    response = client.put(f"/api/projects/{project.id}", json={"status": "ON_HOLD"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "ON_HOLD"

    handover = client.put(f"/api/projects/{project.id}", json={"project_manager_id": successor.id}, headers=headers)
    assert handover.status_code == 403

    foreign = make_project(manager=successor)
    assert client.put(f"/api/projects/{foreign.id}", json={"status": "ACTIVE"}, headers=headers).status_code == 403


def test_update_rejects_end_before_existing_start(client, auth_headers, make_user, make_project):
    hr = make_user(Role.HR)
    project = make_project()
    headers = auth_headers(hr)
    assert client.put(f"/api/projects/{project.id}", json={"start_date": "2026-03-01"}, headers=headers).status_code == 200
    response = client.put(f"/api/projects/{project.id}", json={"end_date": "2026-02-01"}, headers=headers)
    assert response.status_code == 400
    assert "end_date" in response.json()["data"]


def test_delete_project(client, auth_headers, make_user, make_project, make_timesheet):
    hr = make_user(Role.HR)
    employee = make_user(Role.EMPLOYEE)
    empty = make_project()
    busy = make_project()
    make_timesheet(employee, busy)
    headers = auth_headers(hr)

    assert client.delete(f"/api/projects/{busy.id}", headers=headers).status_code == 409
    assert client.delete(f"/api/projects/{empty.id}", headers=headers).status_code == 200
    assert client.get(f"/api/projects/{empty.id}", headers=headers).status_code == 404
