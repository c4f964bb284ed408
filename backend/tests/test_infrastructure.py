from __future__ import annotations

import json
import logging

import pytest
from pydantic import ValidationError
from sqlalchemy.orm import sessionmaker

from hrportal.core.logging import JsonFormatter
from hrportal.core.settings import Settings
from hrportal.db.session import session_scope
from hrportal.models.enums import Role
from hrportal.models.user import User


def _security_events(caplog, event):
    return [r for r in caplog.records if r.name == "security" and getattr(r, "event", None) == event]


def test_json_formatter_emits_context_and_skips_empty_fields():
    record = logging.LogRecord("hrportal.services.timesheets", logging.INFO, __file__, 1, "timesheet_approved", None, None)
    record.timesheet_id = 7
    record.user_id = None

    line = json.loads(JsonFormatter(service="HR Portal API", environment="test").format(record))
    assert line["message"] == "timesheet_approved"
    assert line["timesheet_id"] == 7
    assert line["service"] == "HR Portal API"
    assert line["env"] == "test"
    assert "user_id" not in line


def test_rejected_token_is_logged_with_request_id(client, caplog):
    caplog.set_level(logging.INFO, logger="security")
    response = client.get(
        "/api/auth/me",
        headers={"Authorization": "Bearer not-a-jwt", "X-Request-Id": "req-auth-1"},
    )
    assert response.status_code == 401
    [record] = _security_events(caplog, "token_invalid")
    assert record.request_id == "req-auth-1"
    assert record.path == "/api/auth/me"


def test_forbidden_request_is_logged_with_role(client, auth_headers, make_user, caplog):
    caplog.set_level(logging.INFO, logger="security")
    employee = make_user(Role.EMPLOYEE)
    assert client.get("/api/admin/users", headers=auth_headers(employee)).status_code == 403
    [record] = _security_events(caplog, "forbidden")
    assert record.user_id == employee.id
    assert record.role == "EMPLOYEE"


def test_login_is_logged(client, make_user, password, caplog):
    caplog.set_level(logging.INFO, logger="security")
    user = make_user(Role.MANAGER)
    response = client.post("/api/auth/login", json={"email": user.email, "password": password})
    assert response.status_code == 200
    [record] = _security_events(caplog, "login_success")
    assert record.user_id == user.id
    assert record.role == "MANAGER"


def test_session_scope_rolls_back_on_error(engine):
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    with pytest.raises(RuntimeError):
        with session_scope(factory) as db:
            db.add(User(name="Ghost", email="ghost@example.com", hashed_password="x", role=Role.EMPLOYEE))
            db.flush()
            raise RuntimeError("abort seed")

    with session_scope(factory) as db:
        assert db.query(User).filter(User.email == "ghost@example.com").count() == 0
        db.add(User(name="Kept", email="kept@example.com", hashed_password="x", role=Role.EMPLOYEE))

    with session_scope(factory) as db:
        assert db.query(User).filter(User.email == "kept@example.com").count() == 1


def test_timestamps_load_as_utc(make_user):
    user = make_user(Role.EMPLOYEE)
    assert user.created_at.tzinfo is not None
    assert user.created_at.utcoffset().total_seconds() == 0


def test_unknown_work_timezone_is_rejected():
    with pytest.raises(ValidationError):
        Settings(work_timezone="Mars/Olympus_Mons")
