from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from hrportal.core import rbac
from hrportal.core.deps import get_current_principal
from hrportal.core.rbac import Principal
from hrportal.db.session import get_db
from hrportal.models.enums import Role, TimesheetStatus
from hrportal.schemas.assignment import AssignmentRead
from hrportal.schemas.base import ApiResponse
from hrportal.schemas.project import ProjectRead
from hrportal.schemas.timesheet import ReviewRequest, TimesheetRead, TimesheetSummary
from hrportal.schemas.user import UserPublic
from hrportal.services import timesheets as lifecycle
from hrportal.services.assignments import list_for_managed_projects
from hrportal.services.projects import list_projects_for
from hrportal.services.timesheet_views import managed_summary, managed_timesheets
from hrportal.services.users import list_managed_employees

router = APIRouter(prefix="/api/manager", tags=["manager"])


def _require_manager(principal: Principal) -> None:
    rbac.require_roles(principal, {Role.MANAGER})


@router.get("/employees", response_model=ApiResponse[List[UserPublic]])
def employees(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[List[UserPublic]]:
    return ApiResponse(data=[UserPublic.model_validate(user) for user in list_managed_employees(db, principal)])


@router.get("/projects", response_model=ApiResponse[List[ProjectRead]])
def projects(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[List[ProjectRead]]:
    _require_manager(principal)
    return ApiResponse(data=[ProjectRead.model_validate(project) for project in list_projects_for(db, principal)])


@router.get("/assignments", response_model=ApiResponse[List[AssignmentRead]])
def assignments(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[List[AssignmentRead]]:
    rows = list_for_managed_projects(db, principal)
    return ApiResponse(data=[AssignmentRead.model_validate(row) for row in rows])


@router.get("/timesheets", response_model=ApiResponse[List[TimesheetRead]])
def timesheets(
    status_filter: Optional[TimesheetStatus] = Query(None, alias="status"),
    employee_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[List[TimesheetRead]]:
    rows = managed_timesheets(db, principal, status=status_filter, employee_id=employee_id)
    return ApiResponse(data=list(rows))


@router.get("/timesheets/pending", response_model=ApiResponse[List[TimesheetRead]])
def pending_timesheets(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[List[TimesheetRead]]:
    return ApiResponse(data=list(managed_timesheets(db, principal, status=TimesheetStatus.PENDING)))


@router.get("/timesheets/summary", response_model=ApiResponse[TimesheetSummary])
def summary(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[TimesheetSummary]:
    return ApiResponse(data=managed_summary(db, principal))


@router.get("/timesheets/status/{status_value}", response_model=ApiResponse[List[TimesheetRead]])
def timesheets_by_status(
    status_value: TimesheetStatus,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[List[TimesheetRead]]:
    return ApiResponse(data=list(managed_timesheets(db, principal, status=status_value)))


@router.get("/timesheets/employee/{employee_id}", response_model=ApiResponse[List[TimesheetRead]])
def employee_timesheets(
    employee_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[List[TimesheetRead]]:
    return ApiResponse(data=list(managed_timesheets(db, principal, employee_id=employee_id)))


@router.put("/timesheets/{timesheet_id}/approve", response_model=ApiResponse[TimesheetRead])
def approve(
    timesheet_id: int,
    payload: Optional[ReviewRequest] = Body(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[TimesheetRead]:
    comments = payload.comments if payload else None
    timesheet = lifecycle.approve_timesheet(db, principal, timesheet_id, comments)
    return ApiResponse(message="Timesheet approved", data=TimesheetRead.model_validate(timesheet))


@router.put("/timesheets/{timesheet_id}/reject", response_model=ApiResponse[TimesheetRead])
def reject(
    timesheet_id: int,
    payload: Optional[ReviewRequest] = Body(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[TimesheetRead]:
    comments = payload.comments if payload else None
    timesheet = lifecycle.reject_timesheet(db, principal, timesheet_id, comments)
    return ApiResponse(message="Timesheet rejected", data=TimesheetRead.model_validate(timesheet))
