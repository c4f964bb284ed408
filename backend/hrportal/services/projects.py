from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from hrportal.core import rbac
from hrportal.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationFailedError
from hrportal.core.rbac import Principal
from hrportal.models.enums import ProjectStatus, Role
from hrportal.models.project import Project
from hrportal.models.timesheet import Timesheet
from hrportal.models.user import User
from hrportal.schemas.project import ProjectCreate, ProjectUpdate
from hrportal.services.activity import log_activity
from hrportal.services.assignments import assigned_projects, is_assigned

logger = logging.getLogger(__name__)

PROJECT_ADMIN_ROLES = {Role.ADMIN, Role.HR}
CLOSED_STATUSES = {ProjectStatus.COMPLETED, ProjectStatus.CANCELLED}


def get_project_or_404(db: Session, project_id: int) -> Project:
    project = db.get(Project, project_id)
    if not project:
        raise NotFoundError("Project not found")
    return project


def _resolve_project_manager(db: Session, manager_id: Optional[int]) -> Optional[User]:
    if manager_id is None:
        return None
    manager = db.get(User, manager_id)
    if not manager or manager.role != Role.MANAGER or not manager.is_active:
        raise ValidationFailedError(
            "Invalid project manager",
            {"project_manager_id": "Project manager must be an active user with role MANAGER"},
        )
    return manager


def list_projects_for(db: Session, principal: Principal, *, status: Optional[ProjectStatus] = None) -> List[Project]:
    role = principal.role
    query = db.query(Project)
    if role == Role.ADMIN or role == Role.HR:
        pass
    elif role == Role.MANAGER:
        query = query.filter(Project.project_manager_id == principal.id)
    elif role == Role.EMPLOYEE:
        projects = assigned_projects(db, principal.id)
        return [project for project in projects if status is None or project.status == status]
    else:
        raise ValueError(f"Unhandled role: {role!r}")
    if status is not None:
        query = query.filter(Project.status == status)
    return query.order_by(Project.name, Project.id).all()


def submittable_projects(db: Session, principal: Principal) -> List[Project]:
    """Projects the principal may log time against."""
    role = principal.role
    if role == Role.EMPLOYEE:
        return assigned_projects(db, principal.id)
    if role == Role.MANAGER:
        return (
            db.query(Project)
            .filter(Project.status.notin_(CLOSED_STATUSES))
            .order_by(Project.name, Project.id)
            .all()
        )
    if role == Role.ADMIN or role == Role.HR:
        return []
    raise ValueError(f"Unhandled role: {role!r}")


def get_project_for(db: Session, principal: Principal, project_id: int) -> Project:
    project = get_project_or_404(db, project_id)
    if rbac.can_manage_project(principal, project):
        return project
    if principal.role == Role.EMPLOYEE and is_assigned(db, principal.id, project.id):
        return project
    raise ForbiddenError("Not authorised to view this project")


def create_project(db: Session, principal: Principal, payload: ProjectCreate) -> Project:
    rbac.require_roles(principal, PROJECT_ADMIN_ROLES)
    manager = _resolve_project_manager(db, payload.project_manager_id)
    project = Project(
        name=payload.name.strip(),
        description=payload.description,
        start_date=payload.start_date,
        end_date=payload.end_date,
        status=payload.status,
        priority=payload.priority,
        budget=payload.budget,
        project_manager_id=manager.id if manager else None,
        created_by_user_id=principal.id,
    )
    db.add(project)
    db.flush()
    log_activity(
        db,
        actor_user_id=principal.id,
        activity_type="PROJECT_CREATED",
        entity_type="project",
        entity_id=project.id,
        message=f"Project created: {project.name}",
    )
    db.commit()
    db.refresh(project)
    logger.info("project_created", extra={"project_id": project.id, "user_id": principal.id})
    return project


def update_project(db: Session, principal: Principal, project_id: int, payload: ProjectUpdate) -> Project:
    project = get_project_or_404(db, project_id)
    rbac.require_manage_project(principal, project)
    changes = payload.model_dump(exclude_unset=True)

    if "project_manager_id" in changes:
        if not rbac.has_any_role(principal, PROJECT_ADMIN_ROLES):
            raise ForbiddenError("Only HR or administrators can change the project manager")
        _resolve_project_manager(db, changes["project_manager_id"])

    start_date = changes.get("start_date", project.start_date)
    end_date = changes.get("end_date", project.end_date)
    if start_date and end_date and end_date < start_date:
        raise ValidationFailedError("Invalid project", {"end_date": "end_date must be on or after start_date"})

    for field, value in changes.items():
        if field in ("name", "status", "priority") and value is None:
            continue
        setattr(project, field, value)
    db.flush()
    log_activity(
        db,
        actor_user_id=principal.id,
        activity_type="PROJECT_UPDATED",
        entity_type="project",
        entity_id=project.id,
        payload={"fields": sorted(changes)},
    )
    db.commit()
    db.refresh(project)
    return project


def delete_project(db: Session, principal: Principal, project_id: int) -> None:
    rbac.require_roles(principal, PROJECT_ADMIN_ROLES)
    project = get_project_or_404(db, project_id)
    if db.query(Timesheet.id).filter(Timesheet.project_id == project.id).first():
        raise ConflictError("Project has timesheets and cannot be deleted")
    name = project.name
    db.delete(project)
    db.flush()
    log_activity(
        db,
        actor_user_id=principal.id,
        activity_type="PROJECT_DELETED",
        entity_type="project",
        entity_id=project_id,
        message=f"Project deleted: {name}",
    )
    db.commit()
    logger.info("project_deleted", extra={"project_id": project_id, "user_id": principal.id})
