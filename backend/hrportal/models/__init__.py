"""Import all models so SQLAlchemy metadata is fully registered."""

from hrportal.db.base import Base

from hrportal.models.audit import ActivityLog
from hrportal.models.enums import ProjectPriority, ProjectStatus, Role, TimesheetStatus
from hrportal.models.project import Project
from hrportal.models.project_assignment import ProjectAssignment
from hrportal.models.timesheet import Timesheet
from hrportal.models.user import User

__all__ = [
    "Base",
    "ActivityLog",
    "Project",
    "ProjectAssignment",
    "ProjectPriority",
    "ProjectStatus",
    "Role",
    "Timesheet",
    "TimesheetStatus",
    "User",
]
