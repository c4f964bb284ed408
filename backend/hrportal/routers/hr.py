from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from hrportal.core import rbac
from hrportal.core.deps import get_current_principal
from hrportal.core.rbac import Principal
from hrportal.db.session import get_db
from hrportal.models.enums import Role, TimesheetStatus
from hrportal.schemas.assignment import AssignmentCreate, AssignmentRead, AssignmentUpdate
from hrportal.schemas.base import ApiResponse
from hrportal.schemas.timesheet import TimesheetRead
from hrportal.schemas.user import AssignManagerRequest, UserPublic
from hrportal.services import assignments as assignment_service
from hrportal.services import users as user_service
from hrportal.services.timesheet_views import all_timesheets

router = APIRouter(prefix="/api/hr", tags=["hr"])

HR_ROLES = {Role.ADMIN, Role.HR}


def _require_hr(principal: Principal) -> None:
    rbac.require_roles(principal, HR_ROLES)


@router.get("/users", response_model=ApiResponse[List[UserPublic]])
def list_users(
    role: Optional[Role] = Query(None),
    active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[List[UserPublic]]:
    users = user_service.list_users(db, principal, role=role, active=active, search=search)
    return ApiResponse(data=[UserPublic.model_validate(user) for user in users])


@router.put("/users/{user_id}/manager", response_model=ApiResponse[UserPublic])
def set_manager(
    user_id: int,
    payload: AssignManagerRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[UserPublic]:
    user = user_service.assign_manager(db, principal, user_id, payload.manager_id)
    return ApiResponse(message="Manager updated", data=UserPublic.model_validate(user))


@router.get("/timesheets", response_model=ApiResponse[List[TimesheetRead]])
def timesheets(
    status_filter: Optional[TimesheetStatus] = Query(None, alias="status"),
    user_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[List[TimesheetRead]]:
    return ApiResponse(data=list(all_timesheets(db, principal, status=status_filter, user_id=user_id)))


@router.get("/assignments", response_model=ApiResponse[List[AssignmentRead]])
def list_assignments(
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[List[AssignmentRead]]:
    rows = assignment_service.list_assignments(db, principal, active_only=active_only)
    return ApiResponse(data=[AssignmentRead.model_validate(row) for row in rows])


@router.post("/assignments", response_model=ApiResponse[AssignmentRead], status_code=status.HTTP_201_CREATED)
def assign(
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[AssignmentRead]:
    assignment = assignment_service.assign_employee(db, principal, payload)
    return ApiResponse(message="Employee assigned", data=AssignmentRead.model_validate(assignment))


@router.get("/assignments/project/{project_id}", response_model=ApiResponse[List[AssignmentRead]])
def project_assignments(
    project_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[List[AssignmentRead]]:
    _require_hr(principal)
    rows = assignment_service.list_for_project(db, principal, project_id)
    return ApiResponse(data=[AssignmentRead.model_validate(row) for row in rows])


@router.get("/assignments/employee/{employee_id}", response_model=ApiResponse[List[AssignmentRead]])
def employee_assignments(
    employee_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[List[AssignmentRead]]:
    _require_hr(principal)
    rows = assignment_service.list_for_employee(db, principal, employee_id)
    return ApiResponse(data=[AssignmentRead.model_validate(row) for row in rows])


@router.put("/assignments/{assignment_id}", response_model=ApiResponse[AssignmentRead])
def update_assignment(
    assignment_id: int,
    payload: AssignmentUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[AssignmentRead]:
    assignment = assignment_service.update_assignment(db, principal, assignment_id, payload)
    return ApiResponse(message="Assignment updated", data=AssignmentRead.model_validate(assignment))


@router.delete(
    "/assignments/project/{project_id}/employee/{employee_id}",
    response_model=ApiResponse[None],
)
def unassign(
    project_id: int,
    employee_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[None]:
    assignment_service.unassign_employee(db, principal, project_id=project_id, employee_id=employee_id)
    return ApiResponse(message="Employee unassigned")
