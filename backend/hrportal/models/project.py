from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import Date, Enum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrportal.db.base import Base, IDMixin, TimestampMixin
from hrportal.models.enums import ProjectPriority, ProjectStatus


class Project(IDMixin, TimestampMixin, Base):
    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, name="project_status"),
        default=ProjectStatus.PLANNING,
        nullable=False,
        index=True,
    )
    priority: Mapped[ProjectPriority] = mapped_column(
        Enum(ProjectPriority, name="project_priority"),
        default=ProjectPriority.MEDIUM,
        nullable=False,
    )
    budget: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)

    project_manager_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    created_by_user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)

    project_manager: Mapped[Optional["User"]] = relationship(
        back_populates="projects_managed",
        foreign_keys=[project_manager_id],
    )
    creator: Mapped[Optional["User"]] = relationship(
        back_populates="projects_created",
        foreign_keys=[created_by_user_id],
    )
    assignments: Mapped[List["ProjectAssignment"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
    )
    timesheets: Mapped[List["Timesheet"]] = relationship(back_populates="project")

    @property
    def project_manager_name(self) -> Optional[str]:
        return self.project_manager.name if self.project_manager else None
