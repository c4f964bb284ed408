"""Role-scoped authorization decisions.

Every predicate takes an explicit :class:`Principal` and the target entity and
returns a bool without touching the database or any request state. The
``require_*`` helpers turn a false result into :class:`ForbiddenError`.

Each predicate branches over all four roles; a role value outside
:class:`Role` raises ``ValueError`` instead of silently denying.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from hrportal.core.errors import ForbiddenError
from hrportal.models.enums import Role, TimesheetStatus


@dataclass(frozen=True)
class Principal:
    id: int
    role: Role


def principal_for(user) -> Principal:
    return Principal(id=user.id, role=Role(user.role))


def _unknown_role(role) -> ValueError:
    return ValueError(f"Unhandled role: {role!r}")


def _is_owner(principal: Principal, timesheet) -> bool:
    return timesheet.user_id == principal.id


def _is_pending(timesheet) -> bool:
    return timesheet.status == TimesheetStatus.PENDING


def _owner_manager_id(timesheet) -> Optional[int]:
    owner = timesheet.user
    return owner.manager_id if owner is not None else None


def has_any_role(principal: Principal, roles: Iterable[Role]) -> bool:
    return principal.role in set(roles)


def manages(principal: Principal, user) -> bool:
    """True when ``user`` falls inside the principal's managed set."""
    role = principal.role
    if role == Role.ADMIN:
        return True
    if role == Role.HR:
        return False
    if role == Role.MANAGER:
        return user.id != principal.id and user.manager_id == principal.id
    if role == Role.EMPLOYEE:
        return False
    raise _unknown_role(role)


def can_view(principal: Principal, timesheet) -> bool:
    role = principal.role
    if role == Role.ADMIN:
        return True
    if role == Role.HR:
        return True
    if role == Role.MANAGER:
        return _is_owner(principal, timesheet) or _owner_manager_id(timesheet) == principal.id
    if role == Role.EMPLOYEE:
        return _is_owner(principal, timesheet)
    raise _unknown_role(role)


def can_modify(principal: Principal, timesheet) -> bool:
    role = principal.role
    if role == Role.ADMIN:
        return True
    if role == Role.HR:
        return False
    if role == Role.MANAGER:
        return _is_owner(principal, timesheet) and _is_pending(timesheet)
    if role == Role.EMPLOYEE:
        return _is_owner(principal, timesheet) and _is_pending(timesheet)
    raise _unknown_role(role)


def can_delete(principal: Principal, timesheet) -> bool:
    return can_modify(principal, timesheet)


def can_approve(principal: Principal, timesheet) -> bool:
    role = principal.role
    if role == Role.ADMIN:
        return True
    if role == Role.HR:
        return False
    if role == Role.MANAGER:
        return not _is_owner(principal, timesheet) and _owner_manager_id(timesheet) == principal.id
    if role == Role.EMPLOYEE:
        return False
    raise _unknown_role(role)


def can_manage_project(principal: Principal, project) -> bool:
    role = principal.role
    if role == Role.ADMIN:
        return True
    if role == Role.HR:
        return True
    if role == Role.MANAGER:
        return project.project_manager_id == principal.id
    if role == Role.EMPLOYEE:
        return False
    raise _unknown_role(role)


def require_roles(principal: Principal, required_roles: Iterable[Role]) -> None:
    required = list(required_roles)
    if not has_any_role(principal, required):
        role_names = ", ".join(role.value for role in required)
        raise ForbiddenError(f"Access denied. Required roles: {role_names}")


def require_view(principal: Principal, timesheet) -> None:
    if not can_view(principal, timesheet):
        raise ForbiddenError("Not authorised to view this timesheet")


def require_modify(principal: Principal, timesheet) -> None:
    if not can_modify(principal, timesheet):
        raise ForbiddenError("Not authorised to modify this timesheet")


def require_delete(principal: Principal, timesheet) -> None:
    if not can_delete(principal, timesheet):
        raise ForbiddenError("Not authorised to delete this timesheet")


def require_approve(principal: Principal, timesheet) -> None:
    if not can_approve(principal, timesheet):
        raise ForbiddenError("Not authorised to review this timesheet")


def require_manage_project(principal: Principal, project) -> None:
    if not can_manage_project(principal, project):
        raise ForbiddenError("Not authorised to manage this project")
