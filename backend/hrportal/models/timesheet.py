from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import Date, Enum, Float, ForeignKey, Integer, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrportal.db.base import Base, IDMixin, TimestampMixin, UTCDateTime
from hrportal.models.enums import TimesheetStatus


class Timesheet(IDMixin, TimestampMixin, Base):
    __tablename__ = "timesheets"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    project_id: Mapped[Optional[int]] = mapped_column(ForeignKey("projects.id"), nullable=True, index=True)

    work_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    hours: Mapped[float] = mapped_column(Float, nullable=False)
    start_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    end_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    status: Mapped[TimesheetStatus] = mapped_column(
        Enum(TimesheetStatus, name="timesheet_status"),
        default=TimesheetStatus.PENDING,
        nullable=False,
        index=True,
    )
    reviewed_by_user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    review_comments: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Bumped on every flush; concurrent writers fail with StaleDataError.
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    user: Mapped["User"] = relationship(back_populates="timesheets", foreign_keys=[user_id])
    project: Mapped[Optional["Project"]] = relationship(back_populates="timesheets")
    reviewed_by: Mapped[Optional["User"]] = relationship(
        back_populates="timesheets_reviewed",
        foreign_keys=[reviewed_by_user_id],
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_pending(self) -> bool:
        return self.status == TimesheetStatus.PENDING

    @property
    def can_be_modified(self) -> bool:
        return self.is_pending
