from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from hrportal.core.deps import get_current_principal
from hrportal.core.rbac import Principal
from hrportal.db.session import get_db
from hrportal.models.enums import TimesheetStatus
from hrportal.schemas.base import ApiResponse
from hrportal.schemas.project import ProjectBrief
from hrportal.schemas.timesheet import TimesheetCreate, TimesheetRead, TimesheetUpdate
from hrportal.services import timesheets as lifecycle
from hrportal.services.projects import submittable_projects
from hrportal.services.timesheet_views import own_timesheets

router = APIRouter(prefix="/api/timesheets", tags=["timesheets"])


@router.post("", response_model=ApiResponse[TimesheetRead], status_code=status.HTTP_201_CREATED)
def submit(
    payload: TimesheetCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[TimesheetRead]:
    timesheet = lifecycle.submit_timesheet(db, principal, payload)
    return ApiResponse(message="Timesheet submitted", data=TimesheetRead.model_validate(timesheet))


@router.get("", response_model=ApiResponse[List[TimesheetRead]])
def list_own(
    status_filter: Optional[TimesheetStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[List[TimesheetRead]]:
    return ApiResponse(data=list(own_timesheets(db, principal, status=status_filter)))


@router.get("/projects", response_model=ApiResponse[List[ProjectBrief]])
def list_projects(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[List[ProjectBrief]]:
    projects = submittable_projects(db, principal)
    return ApiResponse(data=[ProjectBrief.model_validate(project) for project in projects])


@router.get("/{timesheet_id}", response_model=ApiResponse[TimesheetRead])
def get_timesheet(
    timesheet_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[TimesheetRead]:
    timesheet = lifecycle.get_visible_timesheet(db, principal, timesheet_id)
    return ApiResponse(data=TimesheetRead.model_validate(timesheet))


@router.put("/{timesheet_id}", response_model=ApiResponse[TimesheetRead])
def update_timesheet(
    timesheet_id: int,
    payload: TimesheetUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[TimesheetRead]:
    timesheet = lifecycle.update_timesheet(db, principal, timesheet_id, payload)
    return ApiResponse(message="Timesheet updated", data=TimesheetRead.model_validate(timesheet))


@router.delete("/{timesheet_id}", response_model=ApiResponse[None])
def delete_timesheet(
    timesheet_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[None]:
    lifecycle.delete_timesheet(db, principal, timesheet_id)
    return ApiResponse(message="Timesheet deleted")
