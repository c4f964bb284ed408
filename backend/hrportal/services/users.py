from __future__ import annotations

import logging
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from hrportal.core import rbac
from hrportal.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
    ValidationFailedError,
)
from hrportal.core.rbac import Principal
from hrportal.core.security import get_password_hash, verify_password
from hrportal.core.settings import settings
from hrportal.models.enums import Role, TimesheetStatus
from hrportal.models.project import Project
from hrportal.models.project_assignment import ProjectAssignment
from hrportal.models.timesheet import Timesheet
from hrportal.models.user import User
from hrportal.schemas.user import ProfileUpdate, UserCreate, UserRegister, UserUpdate
from hrportal.services.activity import log_activity

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("security")

SELF_SERVICE_ROLES = {Role.EMPLOYEE, Role.MANAGER}
USER_ADMIN_ROLES = {Role.ADMIN}
MANAGER_ASSIGNER_ROLES = {Role.ADMIN, Role.HR}


def require_user_admin(principal: Principal) -> None:
    rbac.require_roles(principal, USER_ADMIN_ROLES)


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def find_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def _ensure_unique(
    db: Session,
    *,
    email: Optional[str] = None,
    employee_id: Optional[str] = None,
    exclude_id: Optional[int] = None,
) -> None:
    if email is not None:
        query = db.query(User.id).filter(User.email == email)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise ConflictError("Email already registered")
    if employee_id:
        query = db.query(User.id).filter(User.employee_id == employee_id)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise ConflictError("Employee ID already in use")


def _resolve_manager(db: Session, manager_id: Optional[int], *, field: str = "manager_id") -> Optional[User]:
    if manager_id is None:
        return None
    manager = db.get(User, manager_id)
    if not manager or manager.role != Role.MANAGER or not manager.is_active:
        raise ValidationFailedError(
            "Invalid manager",
            {field: "Manager must be an active user with role MANAGER"},
        )
    return manager


def _active_reports(db: Session, manager: User) -> List[User]:
    return (
        db.query(User)
        .filter(User.manager_id == manager.id, User.is_active.is_(True))
        .order_by(User.id)
        .all()
    )


def _has_reports(db: Session, manager: User) -> bool:
    return db.query(User.id).filter(User.manager_id == manager.id).first() is not None


def _has_active_assignments(db: Session, user: User) -> bool:
    return (
        db.query(ProjectAssignment.id)
        .filter(ProjectAssignment.employee_id == user.id, ProjectAssignment.is_active.is_(True))
        .first()
        is not None
    )


def _drop_stale_manager(db: Session, user: User) -> Optional[int]:
    """Clear a manager link that no longer points at an active MANAGER; returns the dropped id."""
    if user.manager_id is None:
        return None
    manager = db.get(User, user.manager_id)
    if manager is not None and manager.role == Role.MANAGER and manager.is_active:
        return None
    stale_id = user.manager_id
    user.manager_id = None
    return stale_id


def _release_reports(
    db: Session,
    manager: User,
    *,
    reassign_to: Optional[int],
    orphan: bool,
) -> int:
    """Move a manager's active reports elsewhere; Conflict when no instruction was given."""
    reports = _active_reports(db, manager)
    if not reports:
        return 0
    if reassign_to is not None:
        target = _resolve_manager(db, reassign_to, field="reassign_to")
        if target.id == manager.id:
            raise ValidationFailedError("Invalid manager", {"reassign_to": "Cannot reassign to the same manager"})
        for report in reports:
            report.manager_id = target.id
    elif orphan:
        for report in reports:
            report.manager_id = None
    else:
        raise ConflictError(
            f"Manager still has {len(reports)} active employee(s); reassign them or pass orphan=true"
        )
    db.flush()
    return len(reports)


def _create(
    db: Session,
    payload: UserRegister,
    *,
    actor_user_id: Optional[int],
    activity_type: str,
    manager_id: Optional[int] = None,
    is_active: bool = True,
) -> User:
    _ensure_unique(db, email=payload.email, employee_id=payload.employee_id)
    manager = _resolve_manager(db, manager_id)
    user = User(
        name=payload.name.strip(),
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        role=payload.role,
        employee_id=payload.employee_id or None,
        department=payload.department,
        job_title=payload.job_title,
        manager_id=manager.id if manager else None,
        is_active=is_active,
    )
    db.add(user)
    db.flush()
    log_activity(
        db,
        actor_user_id=actor_user_id if actor_user_id is not None else user.id,
        activity_type=activity_type,
        entity_type="user",
        entity_id=user.id,
        message=f"User created: {user.email}",
        payload={"role": user.role.value},
    )
    db.commit()
    db.refresh(user)
    logger.info("user_created", extra={"target_user_id": user.id, "user_id": actor_user_id})
    return user


def authenticate(db: Session, *, email: str, password: str) -> User:
    user = find_by_email(db, email)
    if not user or not verify_password(password, user.hashed_password):
        security_logger.info("login_failed", extra={"event": "login_failed"})
        raise UnauthenticatedError("Invalid email or password")
    if not user.is_active:
        security_logger.info("login_inactive", extra={"event": "login_inactive", "user_id": user.id})
        raise UnauthenticatedError("Account is deactivated")
    log_activity(
        db,
        actor_user_id=user.id,
        activity_type="USER_LOGIN",
        entity_type="user",
        entity_id=user.id,
        message="User logged in",
    )
    db.commit()
    return user


def register_user(db: Session, payload: UserRegister) -> User:
    if not settings.allow_self_registration:
        raise ForbiddenError("Self-registration is disabled")
    if payload.role not in SELF_SERVICE_ROLES:
        raise ForbiddenError("Only EMPLOYEE or MANAGER accounts can be self-registered")
    return _create(db, payload, actor_user_id=None, activity_type="USER_REGISTERED")


def create_user(db: Session, principal: Principal, payload: UserCreate) -> User:
    require_user_admin(principal)
    return _create(
        db,
        payload,
        actor_user_id=principal.id,
        activity_type="USER_CREATED",
        manager_id=payload.manager_id,
        is_active=payload.is_active,
    )


def update_user(db: Session, principal: Principal, user_id: int, payload: UserUpdate) -> User:
    require_user_admin(principal)
    user = get_user_or_404(db, user_id)
    changes = payload.model_dump(exclude_unset=True)

    if "email" in changes:
        if changes["email"] is None:
            raise ValidationFailedError("Invalid user", {"email": "Email is required"})
        _ensure_unique(db, email=changes["email"], exclude_id=user.id)
    if changes.get("employee_id"):
        _ensure_unique(db, employee_id=changes["employee_id"], exclude_id=user.id)

    if "manager_id" in changes:
        if changes["manager_id"] == user.id:
            raise ValidationFailedError("Invalid manager", {"manager_id": "A user cannot manage themselves"})
        _resolve_manager(db, changes["manager_id"])

    new_role = changes.get("role")
    if new_role is not None and user.role == Role.MANAGER and new_role != Role.MANAGER:
        # Inactive reports included.
        if _has_reports(db, user):
            raise ConflictError("Reassign this manager's employees before changing their role")
    if new_role is not None and user.role == Role.EMPLOYEE and new_role != Role.EMPLOYEE:
        if _has_active_assignments(db, user):
            raise ConflictError("End this employee's active project assignments before changing their role")
    if changes.get("is_active") is False and user.role == Role.MANAGER:
        if _active_reports(db, user):
            raise ConflictError("Reassign this manager's employees before deactivating them")

    password = changes.pop("password", None)
    if password:
        user.hashed_password = get_password_hash(password)
    for field, value in changes.items():
        if field in ("name", "role", "email", "is_active") and value is None:
            continue
        if field == "employee_id":
            value = value or None
        setattr(user, field, value)

    if changes.get("is_active") is True and "manager_id" not in changes:
        _drop_stale_manager(db, user)
    db.flush()
    log_activity(
        db,
        actor_user_id=principal.id,
        activity_type="USER_UPDATED",
        entity_type="user",
        entity_id=user.id,
        message=f"User updated: {user.email}",
        payload={"fields": sorted(set(changes) | ({"password"} if password else set()))},
    )
    db.commit()
    db.refresh(user)
    return user


def update_profile(db: Session, user: User, payload: ProfileUpdate) -> User:
    changes = payload.model_dump(exclude_unset=True)
    new_password = changes.pop("new_password", None)
    current_password = changes.pop("current_password", None)
    if new_password:
        if not current_password or not verify_password(current_password, user.hashed_password):
            raise ValidationFailedError(
                "Invalid password change",
                {"current_password": "Current password is incorrect"},
            )
        user.hashed_password = get_password_hash(new_password)
    for field, value in changes.items():
        if field == "name" and value is None:
            continue
        setattr(user, field, value)
    db.flush()
    log_activity(
        db,
        actor_user_id=user.id,
        activity_type="PROFILE_UPDATED",
        entity_type="user",
        entity_id=user.id,
        payload={"password_changed": bool(new_password)},
    )
    db.commit()
    db.refresh(user)
    return user


def assign_manager(db: Session, principal: Principal, employee_id: int, manager_id: Optional[int]) -> User:
    rbac.require_roles(principal, MANAGER_ASSIGNER_ROLES)
    employee = get_user_or_404(db, employee_id)
    if employee.role != Role.EMPLOYEE:
        raise ValidationFailedError("Invalid employee", {"employee_id": "Only employees can be assigned a manager"})
    manager = _resolve_manager(db, manager_id)
    employee.manager_id = manager.id if manager else None
    db.flush()
    log_activity(
        db,
        actor_user_id=principal.id,
        activity_type="MANAGER_ASSIGNED",
        entity_type="user",
        entity_id=employee.id,
        message=f"Manager set for {employee.email}",
        payload={"manager_id": employee.manager_id},
    )
    db.commit()
    db.refresh(employee)
    return employee


def deactivate_user(
    db: Session,
    principal: Principal,
    user_id: int,
    *,
    reassign_to: Optional[int] = None,
    orphan: bool = False,
) -> User:
    require_user_admin(principal)
    user = get_user_or_404(db, user_id)
    if user.id == principal.id:
        raise ForbiddenError("You cannot deactivate your own account")
    moved = _release_reports(db, user, reassign_to=reassign_to, orphan=orphan)
    user.is_active = False
    db.flush()
    log_activity(
        db,
        actor_user_id=principal.id,
        activity_type="USER_DEACTIVATED",
        entity_type="user",
        entity_id=user.id,
        message=f"User deactivated: {user.email}",
        payload={"reports_moved": moved, "reassign_to": reassign_to, "orphan": orphan},
    )
    db.commit()
    db.refresh(user)
    logger.info("user_deactivated", extra={"target_user_id": user.id, "user_id": principal.id})
    return user


def activate_user(db: Session, principal: Principal, user_id: int) -> User:
    require_user_admin(principal)
    user = get_user_or_404(db, user_id)
    user.is_active = True
    stale_manager_id = _drop_stale_manager(db, user)
    db.flush()
    log_activity(
        db,
        actor_user_id=principal.id,
        activity_type="USER_ACTIVATED",
        entity_type="user",
        entity_id=user.id,
        message=f"User activated: {user.email}",
        payload={"dropped_manager_id": stale_manager_id} if stale_manager_id else None,
    )
    db.commit()
    db.refresh(user)
    return user


def _has_dependent_records(db: Session, user: User) -> bool:
    checks = (
        db.query(Timesheet.id).filter(Timesheet.user_id == user.id),
        db.query(Timesheet.id).filter(Timesheet.reviewed_by_user_id == user.id),
        db.query(ProjectAssignment.id).filter(
            (ProjectAssignment.employee_id == user.id) | (ProjectAssignment.assigned_by_user_id == user.id)
        ),
        db.query(Project.id).filter(
            (Project.project_manager_id == user.id) | (Project.created_by_user_id == user.id)
        ),
    )
    return any(query.first() is not None for query in checks)


def delete_user(
    db: Session,
    principal: Principal,
    user_id: int,
    *,
    reassign_to: Optional[int] = None,
    orphan: bool = False,
) -> None:
    require_user_admin(principal)
    user = get_user_or_404(db, user_id)
    if user.id == principal.id:
        raise ForbiddenError("You cannot delete your own account")
    if _has_dependent_records(db, user):
        raise ConflictError("User has timesheets, assignments or projects; deactivate the account instead")
    _release_reports(db, user, reassign_to=reassign_to, orphan=orphan)
    email = user.email
    db.delete(user)
    db.flush()
    log_activity(
        db,
        actor_user_id=principal.id,
        activity_type="USER_DELETED",
        entity_type="user",
        entity_id=user_id,
        message=f"User deleted: {email}",
    )
    db.commit()
    logger.info("user_deleted", extra={"target_user_id": user_id, "user_id": principal.id})


def list_users(
    db: Session,
    principal: Principal,
    *,
    role: Optional[Role] = None,
    active: Optional[bool] = None,
    search: Optional[str] = None,
) -> List[User]:
    rbac.require_roles(principal, {Role.ADMIN, Role.HR})
    query = db.query(User)
    if role is not None:
        query = query.filter(User.role == role)
    if active is not None:
        query = query.filter(User.is_active.is_(active))
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(func.lower(User.name).like(pattern) | func.lower(User.email).like(pattern))
    return query.order_by(User.name, User.id).all()


def list_managed_employees(db: Session, principal: Principal) -> List[User]:
    rbac.require_roles(principal, {Role.MANAGER})
    return (
        db.query(User)
        .filter(User.manager_id == principal.id, User.id != principal.id)
        .order_by(User.name, User.id)
        .all()
    )


def user_stats(db: Session, principal: Principal) -> Dict[str, object]:
    rbac.require_roles(principal, {Role.ADMIN})
    by_role = {role.value: 0 for role in Role}
    for role, count in db.query(User.role, func.count(User.id)).group_by(User.role).all():
        by_role[Role(role).value] = count
    total = sum(by_role.values())
    active = db.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar() or 0
    return {
        "total_users": total,
        "active_users": active,
        "inactive_users": total - active,
        "by_role": by_role,
        "total_projects": db.query(func.count(Project.id)).scalar() or 0,
        "pending_timesheets": db.query(func.count(Timesheet.id))
        .filter(Timesheet.status == TimesheetStatus.PENDING)
        .scalar()
        or 0,
    }
