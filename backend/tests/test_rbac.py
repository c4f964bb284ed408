from __future__ import annotations

from types import SimpleNamespace

import pytest

from hrportal.core import rbac
from hrportal.core.errors import ForbiddenError
from hrportal.core.rbac import Principal
from hrportal.models.enums import Role, TimesheetStatus

EMPLOYEE_ID = 10
MANAGER_ID = 20
OTHER_MANAGER_ID = 21


def _timesheet(owner_id=EMPLOYEE_ID, manager_id=MANAGER_ID, status=TimesheetStatus.PENDING):
    owner = SimpleNamespace(id=owner_id, manager_id=manager_id)
    return SimpleNamespace(user_id=owner_id, user=owner, status=status)


def test_admin_can_do_everything():
    admin = Principal(id=1, role=Role.ADMIN)
    for status in TimesheetStatus:
        ts = _timesheet(status=status)
        assert rbac.can_view(admin, ts)
        assert rbac.can_modify(admin, ts)
        assert rbac.can_delete(admin, ts)
        assert rbac.can_approve(admin, ts)


def test_hr_is_read_only_on_timesheets():
    hr = Principal(id=2, role=Role.HR)
    ts = _timesheet()
    assert rbac.can_view(hr, ts)
    assert not rbac.can_modify(hr, ts)
    assert not rbac.can_delete(hr, ts)
    assert not rbac.can_approve(hr, ts)


def test_employee_sees_and_edits_only_own_pending():
    owner = Principal(id=EMPLOYEE_ID, role=Role.EMPLOYEE)
    stranger = Principal(id=99, role=Role.EMPLOYEE)
    pending = _timesheet()
    approved = _timesheet(status=TimesheetStatus.APPROVED)

    assert rbac.can_view(owner, pending)
    assert rbac.can_modify(owner, pending)
    assert rbac.can_delete(owner, pending)
    assert rbac.can_view(owner, approved)
    assert not rbac.can_modify(owner, approved)
    assert not rbac.can_delete(owner, approved)
    assert not rbac.can_approve(owner, pending)

    assert not rbac.can_view(stranger, pending)
    assert not rbac.can_modify(stranger, pending)


def test_manager_approves_only_direct_reports():
    direct = Principal(id=MANAGER_ID, role=Role.MANAGER)
    other = Principal(id=OTHER_MANAGER_ID, role=Role.MANAGER)
    ts = _timesheet()

    assert rbac.can_view(direct, ts)
    assert rbac.can_approve(direct, ts)
    assert not rbac.can_modify(direct, ts)

    assert not rbac.can_view(other, ts)
    assert not rbac.can_approve(other, ts)


def test_manager_cannot_self_approve_but_owns_own_timesheet():
    manager = Principal(id=MANAGER_ID, role=Role.MANAGER)
    own = _timesheet(owner_id=MANAGER_ID, manager_id=MANAGER_ID)

    assert rbac.can_view(manager, own)
    assert rbac.can_modify(manager, own)
    assert not rbac.can_approve(manager, own)


def test_orphaned_owner_is_approvable_by_admin_only():
    ts = _timesheet(manager_id=None)
    assert not rbac.can_approve(Principal(id=MANAGER_ID, role=Role.MANAGER), ts)
    assert rbac.can_approve(Principal(id=1, role=Role.ADMIN), ts)


def test_manages_uses_direct_manager_link():
    manager = Principal(id=MANAGER_ID, role=Role.MANAGER)
    report = SimpleNamespace(id=EMPLOYEE_ID, manager_id=MANAGER_ID)
    stranger = SimpleNamespace(id=30, manager_id=OTHER_MANAGER_ID)

    assert rbac.manages(manager, report)
    assert not rbac.manages(manager, stranger)
    assert not rbac.manages(Principal(id=2, role=Role.HR), report)


def test_project_management_rights():
    project = SimpleNamespace(project_manager_id=MANAGER_ID)
    assert rbac.can_manage_project(Principal(id=1, role=Role.ADMIN), project)
    assert rbac.can_manage_project(Principal(id=2, role=Role.HR), project)
    assert rbac.can_manage_project(Principal(id=MANAGER_ID, role=Role.MANAGER), project)
    assert not rbac.can_manage_project(Principal(id=OTHER_MANAGER_ID, role=Role.MANAGER), project)
    assert not rbac.can_manage_project(Principal(id=EMPLOYEE_ID, role=Role.EMPLOYEE), project)


def test_unknown_role_fails_loudly():
    bogus = Principal(id=1, role="AUDITOR")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        rbac.can_view(bogus, _timesheet())
    with pytest.raises(ValueError):
        rbac.can_approve(bogus, _timesheet())


def test_require_helpers_raise_forbidden():
    stranger = Principal(id=99, role=Role.EMPLOYEE)
    with pytest.raises(ForbiddenError) as excinfo:
        rbac.require_approve(stranger, _timesheet())
    assert excinfo.value.status_code == 403

    with pytest.raises(ForbiddenError):
        rbac.require_roles(stranger, {Role.ADMIN, Role.HR})
    rbac.require_roles(stranger, {Role.EMPLOYEE})
