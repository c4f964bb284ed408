from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from hrportal.core import rbac
from hrportal.core.errors import ConflictError, NotFoundError, ValidationFailedError
from hrportal.core.rbac import Principal
from hrportal.models.enums import Role
from hrportal.models.project import Project
from hrportal.models.project_assignment import ProjectAssignment
from hrportal.schemas.assignment import AssignmentCreate, AssignmentUpdate
from hrportal.services.activity import log_activity
from hrportal.services.users import get_user_or_404

logger = logging.getLogger(__name__)

ASSIGNER_ROLES = {Role.ADMIN, Role.HR}


def is_assigned(db: Session, employee_id: int, project_id: int) -> bool:
    """True iff an active assignment links the employee to the project."""
    return (
        db.query(ProjectAssignment.id)
        .filter(
            ProjectAssignment.employee_id == employee_id,
            ProjectAssignment.project_id == project_id,
            ProjectAssignment.is_active.is_(True),
        )
        .first()
        is not None
    )


def assigned_projects(db: Session, employee_id: int) -> List[Project]:
    return (
        db.query(Project)
        .join(ProjectAssignment, ProjectAssignment.project_id == Project.id)
        .filter(
            ProjectAssignment.employee_id == employee_id,
            ProjectAssignment.is_active.is_(True),
        )
        .order_by(Project.name, Project.id)
        .all()
    )


def _base_query(db: Session):
    return db.query(ProjectAssignment).options(
        joinedload(ProjectAssignment.employee),
        joinedload(ProjectAssignment.project),
    )


def get_assignment_or_404(db: Session, assignment_id: int) -> ProjectAssignment:
    assignment = db.get(ProjectAssignment, assignment_id)
    if not assignment:
        raise NotFoundError("Assignment not found")
    return assignment


def _get_project_or_404(db: Session, project_id: int) -> Project:
    project = db.get(Project, project_id)
    if not project:
        raise NotFoundError("Project not found")
    return project


def list_assignments(db: Session, principal: Principal, *, active_only: bool = False) -> List[ProjectAssignment]:
    rbac.require_roles(principal, ASSIGNER_ROLES)
    query = _base_query(db)
    if active_only:
        query = query.filter(ProjectAssignment.is_active.is_(True))
    return query.order_by(ProjectAssignment.project_id, ProjectAssignment.id).all()


def list_for_project(db: Session, principal: Principal, project_id: int) -> List[ProjectAssignment]:
    project = _get_project_or_404(db, project_id)
    if not rbac.has_any_role(principal, ASSIGNER_ROLES):
        rbac.require_manage_project(principal, project)
    return (
        _base_query(db)
        .filter(ProjectAssignment.project_id == project.id)
        .order_by(ProjectAssignment.id)
        .all()
    )


def list_for_employee(db: Session, principal: Principal, employee_id: int) -> List[ProjectAssignment]:
    if principal.id != employee_id:
        rbac.require_roles(principal, ASSIGNER_ROLES)
    get_user_or_404(db, employee_id)
    return (
        _base_query(db)
        .filter(ProjectAssignment.employee_id == employee_id)
        .order_by(ProjectAssignment.id)
        .all()
    )


def list_for_managed_projects(db: Session, principal: Principal) -> List[ProjectAssignment]:
    rbac.require_roles(principal, {Role.MANAGER})
    return (
        _base_query(db)
        .join(Project, Project.id == ProjectAssignment.project_id)
        .filter(Project.project_manager_id == principal.id)
        .order_by(ProjectAssignment.project_id, ProjectAssignment.id)
        .all()
    )


def assign_employee(db: Session, principal: Principal, payload: AssignmentCreate) -> ProjectAssignment:
    rbac.require_roles(principal, ASSIGNER_ROLES)
    employee = get_user_or_404(db, payload.employee_id)
    if employee.role != Role.EMPLOYEE or not employee.is_active:
        raise ValidationFailedError(
            "Invalid assignment",
            {"employee_id": "Only active users with role EMPLOYEE can be assigned to projects"},
        )
    project = _get_project_or_404(db, payload.project_id)

    existing = (
        db.query(ProjectAssignment.id)
        .filter(
            ProjectAssignment.project_id == project.id,
            ProjectAssignment.employee_id == employee.id,
        )
        .first()
    )
    if existing:
        raise ConflictError("Employee is already assigned to this project")

    assignment = ProjectAssignment(
        project_id=project.id,
        employee_id=employee.id,
        role=payload.role,
        allocated_hours=payload.allocated_hours,
        assigned_by_user_id=principal.id,
        is_active=True,
    )
    db.add(assignment)
    db.flush()
    log_activity(
        db,
        actor_user_id=principal.id,
        activity_type="EMPLOYEE_ASSIGNED",
        entity_type="project",
        entity_id=project.id,
        message=f"{employee.email} assigned to {project.name}",
        payload={"assignment_id": assignment.id, "employee_id": employee.id},
    )
    db.commit()
    db.refresh(assignment)
    logger.info("employee_assigned", extra={"project_id": project.id, "target_user_id": employee.id})
    return assignment


def update_assignment(
    db: Session,
    principal: Principal,
    assignment_id: int,
    payload: AssignmentUpdate,
) -> ProjectAssignment:
    rbac.require_roles(principal, ASSIGNER_ROLES)
    assignment = get_assignment_or_404(db, assignment_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("is_active") is True and not assignment.is_active:
        employee = get_user_or_404(db, assignment.employee_id)
        if employee.role != Role.EMPLOYEE:
            raise ValidationFailedError(
                "Invalid assignment",
                {"employee_id": "Only users with role EMPLOYEE can hold project assignments"},
            )
    for field, value in changes.items():
        if field == "is_active" and value is None:
            continue
        setattr(assignment, field, value)
    db.flush()
    log_activity(
        db,
        actor_user_id=principal.id,
        activity_type="ASSIGNMENT_UPDATED",
        entity_type="project",
        entity_id=assignment.project_id,
        payload={"assignment_id": assignment.id, "fields": sorted(changes)},
    )
    db.commit()
    db.refresh(assignment)
    return assignment


def unassign_employee(db: Session, principal: Principal, *, project_id: int, employee_id: int) -> None:
    rbac.require_roles(principal, ASSIGNER_ROLES)
    assignment: Optional[ProjectAssignment] = (
        db.query(ProjectAssignment)
        .filter(
            ProjectAssignment.project_id == project_id,
            ProjectAssignment.employee_id == employee_id,
        )
        .first()
    )
    if not assignment:
        raise NotFoundError("Assignment not found")
    db.delete(assignment)
    db.flush()
    log_activity(
        db,
        actor_user_id=principal.id,
        activity_type="EMPLOYEE_UNASSIGNED",
        entity_type="project",
        entity_id=project_id,
        payload={"employee_id": employee_id},
    )
    db.commit()
    logger.info("employee_unassigned", extra={"project_id": project_id, "target_user_id": employee_id})
