from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from hrportal.core.deps import get_current_principal
from hrportal.core.rbac import Principal
from hrportal.db.session import get_db
from hrportal.models.enums import Role, TimesheetStatus
from hrportal.schemas.base import ApiResponse
from hrportal.schemas.timesheet import TimesheetRead
from hrportal.schemas.user import DeactivateRequest, UserCreate, UserPublic, UserStats, UserUpdate
from hrportal.services import users as user_service
from hrportal.services.timesheet_views import all_timesheets

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/users", response_model=ApiResponse[List[UserPublic]])
def list_users(
    role: Optional[Role] = Query(None),
    active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[List[UserPublic]]:
    user_service.require_user_admin(principal)
    users = user_service.list_users(db, principal, role=role, active=active, search=search)
    return ApiResponse(data=[UserPublic.model_validate(user) for user in users])


@router.post("/users", response_model=ApiResponse[UserPublic], status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[UserPublic]:
    user = user_service.create_user(db, principal, payload)
    return ApiResponse(message="User created", data=UserPublic.model_validate(user))


@router.put("/users/{user_id}", response_model=ApiResponse[UserPublic])
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[UserPublic]:
    user = user_service.update_user(db, principal, user_id, payload)
    return ApiResponse(message="User updated", data=UserPublic.model_validate(user))


@router.delete("/users/{user_id}", response_model=ApiResponse[None])
def delete_user(
    user_id: int,
    reassign_to: Optional[int] = Query(None),
    orphan: bool = Query(False),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[None]:
    user_service.delete_user(db, principal, user_id, reassign_to=reassign_to, orphan=orphan)
    return ApiResponse(message="User deleted")


@router.post("/users/{user_id}/deactivate", response_model=ApiResponse[UserPublic])
def deactivate_user(
    user_id: int,
    payload: Optional[DeactivateRequest] = Body(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[UserPublic]:
    payload = payload or DeactivateRequest()
    user = user_service.deactivate_user(
        db,
        principal,
        user_id,
        reassign_to=payload.reassign_to,
        orphan=payload.orphan,
    )
    return ApiResponse(message="User deactivated", data=UserPublic.model_validate(user))


@router.post("/users/{user_id}/activate", response_model=ApiResponse[UserPublic])
def activate_user(
    user_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[UserPublic]:
    user = user_service.activate_user(db, principal, user_id)
    return ApiResponse(message="User activated", data=UserPublic.model_validate(user))


@router.get("/stats", response_model=ApiResponse[UserStats])
def stats(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[UserStats]:
    return ApiResponse(data=UserStats(**user_service.user_stats(db, principal)))


@router.get("/timesheets", response_model=ApiResponse[List[TimesheetRead]])
def timesheets(
    status_filter: Optional[TimesheetStatus] = Query(None, alias="status"),
    user_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ApiResponse[List[TimesheetRead]]:
    user_service.require_user_admin(principal)
    return ApiResponse(data=list(all_timesheets(db, principal, status=status_filter, user_id=user_id)))
