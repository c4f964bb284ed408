from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from hrportal.core.deps import get_current_user
from hrportal.core.logging import log_security_event
from hrportal.core.security import create_user_token
from hrportal.db.session import get_db
from hrportal.models.user import User
from hrportal.schemas.auth import LoginRequest, LoginResponse
from hrportal.schemas.base import ApiResponse
from hrportal.schemas.user import ProfileUpdate, UserPublic, UserRegister
from hrportal.services import users as user_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=ApiResponse[UserPublic], status_code=status.HTTP_201_CREATED)
def register(
    payload: UserRegister,
    request: Request,
    db: Session = Depends(get_db),
) -> ApiResponse[UserPublic]:
    user = user_service.register_user(db, payload)
    log_security_event("user_registered", request, user_id=user.id, role=user.role.value)
    return ApiResponse(message="User registered successfully", data=UserPublic.model_validate(user))


@router.post("/login", response_model=ApiResponse[LoginResponse])
def login(
    payload: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> ApiResponse[LoginResponse]:
    user = user_service.authenticate(db, email=payload.email, password=payload.password)
    token = create_user_token(user)
    log_security_event("login_success", request, user_id=user.id, role=user.role.value)
    return ApiResponse(
        message="Login successful",
        data=LoginResponse(access_token=token, user=UserPublic.model_validate(user)),
    )


@router.get("/me", response_model=ApiResponse[UserPublic])
def me(current_user: User = Depends(get_current_user)) -> ApiResponse[UserPublic]:
    return ApiResponse(data=UserPublic.model_validate(current_user))


@router.put("/me", response_model=ApiResponse[UserPublic])
def update_me(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[UserPublic]:
    user = user_service.update_profile(db, current_user, payload)
    return ApiResponse(message="Profile updated", data=UserPublic.model_validate(user))
