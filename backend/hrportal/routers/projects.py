from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from hrportal.core.deps import get_current_principal
from hrportal.core.rbac import Principal
from hrportal.db.session import get_db
from hrportal.models.enums import ProjectStatus
from hrportal.schemas.base import ApiResponse
from hrportal.schemas.project import ProjectCreate, ProjectRead, ProjectUpdate
from hrportal.services import projects as project_service

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("", response_model=ApiResponse[List[ProjectRead]])
def list_projects(
    status_filter: Optional[ProjectStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[List[ProjectRead]]:
    projects = project_service.list_projects_for(db, principal, status=status_filter)
    return ApiResponse(data=[ProjectRead.model_validate(project) for project in projects])


@router.post("", response_model=ApiResponse[ProjectRead], status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[ProjectRead]:
    project = project_service.create_project(db, principal, payload)
    return ApiResponse(message="Project created", data=ProjectRead.model_validate(project))


@router.get("/{project_id}", response_model=ApiResponse[ProjectRead])
def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[ProjectRead]:
    project = project_service.get_project_for(db, principal, project_id)
    return ApiResponse(data=ProjectRead.model_validate(project))


@router.put("/{project_id}", response_model=ApiResponse[ProjectRead])
def update_project(
    project_id: int,
    payload: ProjectUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[ProjectRead]:
    project = project_service.update_project(db, principal, project_id, payload)
    return ApiResponse(message="Project updated", data=ProjectRead.model_validate(project))


@router.delete("/{project_id}", response_model=ApiResponse[None])
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[None]:
    project_service.delete_project(db, principal, project_id)
    return ApiResponse(message="Project deleted")
