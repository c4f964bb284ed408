from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from hrportal.models.enums import Role
from hrportal.schemas.base import ORMModel


def _validate_email(value: str) -> str:
    value = value.strip()
    local, _, domain = value.partition("@")
    if not local or not domain or "." not in domain:
        raise ValueError("Please provide a valid email address")
    return value.lower()


class UserBrief(ORMModel):
    id: int
    name: str
    email: str
    employee_id: Optional[str] = None


class UserPublic(ORMModel):
    id: int
    name: str
    email: str
    role: Role
    employee_id: Optional[str] = None
    department: Optional[str] = None
    job_title: Optional[str] = None
    manager_id: Optional[int] = None
    manager_name: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class UserRegister(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=100)
    role: Role = Role.EMPLOYEE
    employee_id: Optional[str] = Field(default=None, max_length=20)
    department: Optional[str] = Field(default=None, max_length=100)
    job_title: Optional[str] = Field(default=None, max_length=100)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _validate_email(value)


class UserCreate(UserRegister):
    manager_id: Optional[int] = None
    is_active: bool = True


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, min_length=6, max_length=100)
    role: Optional[Role] = None
    employee_id: Optional[str] = Field(default=None, max_length=20)
    department: Optional[str] = Field(default=None, max_length=100)
    job_title: Optional[str] = Field(default=None, max_length=100)
    manager_id: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: Optional[str]) -> Optional[str]:
        return _validate_email(value) if value is not None else None


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    department: Optional[str] = Field(default=None, max_length=100)
    job_title: Optional[str] = Field(default=None, max_length=100)
    current_password: Optional[str] = None
    new_password: Optional[str] = Field(default=None, min_length=6, max_length=100)


class AssignManagerRequest(BaseModel):
    manager_id: Optional[int] = None


class DeactivateRequest(BaseModel):
    reassign_to: Optional[int] = None
    orphan: bool = False


class UserStats(BaseModel):
    total_users: int
    active_users: int
    inactive_users: int
    by_role: Dict[str, int]
    total_projects: int
    pending_timesheets: int
