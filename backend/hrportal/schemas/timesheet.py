from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, Field

from hrportal.models.enums import TimesheetStatus
from hrportal.schemas.base import ORMModel
from hrportal.schemas.project import ProjectBrief
from hrportal.schemas.user import UserBrief


class TimesheetCreate(BaseModel):
    project_id: Optional[int] = None
    work_date: Optional[date] = None
    hours: float
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    description: Optional[str] = Field(default=None, max_length=1000)
    notes: Optional[str] = Field(default=None, max_length=500)


class TimesheetUpdate(BaseModel):
    project_id: Optional[int] = None
    work_date: Optional[date] = None
    hours: Optional[float] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    description: Optional[str] = Field(default=None, max_length=1000)
    notes: Optional[str] = Field(default=None, max_length=500)


class ReviewRequest(BaseModel):
    comments: Optional[str] = Field(default=None, max_length=500)


class TimesheetRead(ORMModel):
    id: int
    user: UserBrief
    project: Optional[ProjectBrief] = None
    work_date: date
    hours: float
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    status: TimesheetStatus
    reviewed_by: Optional[UserBrief] = None
    reviewed_at: Optional[datetime] = None
    review_comments: Optional[str] = None
    can_be_modified: bool
    version: int
    created_at: datetime
    updated_at: datetime


class TimesheetSummary(BaseModel):
    employees: int
    total: int
    pending: int
    approved: int
    rejected: int
    total_hours: float
    approved_hours: float
