from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from hrportal.schemas.base import ORMModel
from hrportal.schemas.project import ProjectBrief
from hrportal.schemas.user import UserBrief


class AssignmentCreate(BaseModel):
    employee_id: int
    project_id: int
    role: Optional[str] = Field(default=None, max_length=100)
    allocated_hours: Optional[float] = Field(default=None, gt=0)


class AssignmentUpdate(BaseModel):
    role: Optional[str] = Field(default=None, max_length=100)
    allocated_hours: Optional[float] = Field(default=None, gt=0)
    is_active: Optional[bool] = None


class AssignmentRead(ORMModel):
    id: int
    project_id: int
    employee_id: int
    role: Optional[str] = None
    allocated_hours: Optional[float] = None
    is_active: bool
    assigned_by_user_id: Optional[int] = None
    employee: UserBrief
    project: ProjectBrief
    created_at: datetime
