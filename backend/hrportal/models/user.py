from __future__ import annotations

from typing import List, Optional

from sqlalchemy import Boolean, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrportal.db.base import Base, IDMixin, TimestampMixin
from hrportal.models.enums import Role


class User(IDMixin, TimestampMixin, Base):
    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(Enum(Role, name="role"), default=Role.EMPLOYEE, nullable=False, index=True)
    employee_id: Mapped[Optional[str]] = mapped_column(String(20), unique=True, nullable=True, index=True)
    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    job_title: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    # Managed employees are never cascaded; reassignment is explicit in services.users.
    manager_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    manager: Mapped[Optional["User"]] = relationship(
        back_populates="managed_employees",
        remote_side="User.id",
        foreign_keys=[manager_id],
    )
    managed_employees: Mapped[List["User"]] = relationship(
        back_populates="manager",
        foreign_keys=[manager_id],
    )

    timesheets: Mapped[List["Timesheet"]] = relationship(
        back_populates="user",
        foreign_keys="Timesheet.user_id",
    )
    timesheets_reviewed: Mapped[List["Timesheet"]] = relationship(
        back_populates="reviewed_by",
        foreign_keys="Timesheet.reviewed_by_user_id",
    )
    project_assignments: Mapped[List["ProjectAssignment"]] = relationship(
        back_populates="employee",
        foreign_keys="ProjectAssignment.employee_id",
    )
    projects_managed: Mapped[List["Project"]] = relationship(
        back_populates="project_manager",
        foreign_keys="Project.project_manager_id",
    )
    projects_created: Mapped[List["Project"]] = relationship(
        back_populates="creator",
        foreign_keys="Project.created_by_user_id",
    )
    activities: Mapped[List["ActivityLog"]] = relationship(back_populates="actor")

    @property
    def manager_name(self) -> Optional[str]:
        return self.manager.name if self.manager else None
