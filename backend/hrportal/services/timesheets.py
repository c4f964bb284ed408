"""Timesheet lifecycle: submit, edit, review and delete.

A timesheet starts PENDING and moves once to APPROVED or REJECTED; nothing
moves it back. Every mutation re-reads the row with ``FOR UPDATE`` before
checking its status, writes an activity record and commits once. Concurrent
writers surface as :class:`ConflictError` through the mapper's version column.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime, time
from typing import Dict, Iterator, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from hrportal.core import rbac
from hrportal.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationFailedError
from hrportal.core.observability import timesheet_transitions_total
from hrportal.core.rbac import Principal
from hrportal.core.settings import settings
from hrportal.db.base import utcnow, utctoday
from hrportal.models.enums import Role, TimesheetStatus
from hrportal.models.project import Project
from hrportal.models.timesheet import Timesheet
from hrportal.schemas.timesheet import TimesheetCreate, TimesheetUpdate
from hrportal.services.activity import log_activity
from hrportal.services.assignments import is_assigned

logger = logging.getLogger(__name__)

SUBMITTER_ROLES = {Role.EMPLOYEE, Role.MANAGER}


def work_today() -> date:
    """Calendar date in the configured work time zone."""
    if settings.work_timezone == "UTC":
        return utctoday()
    return datetime.now(ZoneInfo(settings.work_timezone)).date()


def get_timesheet_or_404(db: Session, timesheet_id: int, *, for_update: bool = False) -> Timesheet:
    query = db.query(Timesheet).filter(Timesheet.id == timesheet_id)
    if for_update:
        query = query.with_for_update().populate_existing()
    timesheet = query.first()
    if not timesheet:
        raise NotFoundError("Timesheet not found")
    return timesheet


def get_visible_timesheet(db: Session, principal: Principal, timesheet_id: int) -> Timesheet:
    timesheet = get_timesheet_or_404(db, timesheet_id)
    rbac.require_view(principal, timesheet)
    return timesheet


def _check_entry(
    *,
    hours: Optional[float],
    work_date: date,
    start_time: Optional[time],
    end_time: Optional[time],
    project_id: Optional[int],
) -> None:
    errors: Dict[str, str] = {}
    low, high = settings.timesheet_min_hours, settings.timesheet_max_hours
    if hours is None or not (low <= hours <= high):
        errors["hours"] = f"Hours must be between {low:g} and {high:g}"
    if work_date > work_today():
        errors["work_date"] = "Work date cannot be in the future"
    if start_time is not None and end_time is not None and end_time <= start_time:
        errors["end_time"] = "End time must be after start time"
    if project_id is None and settings.timesheet_require_project:
        errors["project_id"] = "Project is required"
    if errors:
        raise ValidationFailedError("Invalid timesheet entry", errors)


def _check_project(db: Session, *, project_id: Optional[int], owner_id: int, owner_role: Role) -> Optional[Project]:
    if project_id is None:
        return None
    project = db.get(Project, project_id)
    if not project:
        raise NotFoundError("Project not found")
    # Managers may log time against any project.
    if owner_role == Role.EMPLOYEE and not is_assigned(db, owner_id, project.id):
        raise ForbiddenError("You are not assigned to this project")
    return project


def _require_owner(principal: Principal, timesheet: Timesheet) -> None:
    if principal.role != Role.ADMIN and timesheet.user_id != principal.id:
        raise ForbiddenError("You can only change your own timesheets")


def _require_pending(timesheet: Timesheet, action: str) -> None:
    if timesheet.status != TimesheetStatus.PENDING:
        raise ConflictError(f"Cannot {action} a timesheet that is {timesheet.status.value}")


@contextmanager
def _versioned_write(db: Session) -> Iterator[None]:
    try:
        yield
        db.commit()
    except StaleDataError:
        db.rollback()
        raise ConflictError("Timesheet was modified by another request")


def submit_timesheet(db: Session, principal: Principal, draft: TimesheetCreate) -> Timesheet:
    if principal.role not in SUBMITTER_ROLES:
        raise ForbiddenError("Only employees and managers can submit timesheets")

    work_date = draft.work_date or work_today()
    _check_entry(
        hours=draft.hours,
        work_date=work_date,
        start_time=draft.start_time,
        end_time=draft.end_time,
        project_id=draft.project_id,
    )
    project = _check_project(db, project_id=draft.project_id, owner_id=principal.id, owner_role=principal.role)

    timesheet = Timesheet(
        user_id=principal.id,
        project_id=project.id if project else None,
        work_date=work_date,
        hours=draft.hours,
        start_time=draft.start_time,
        end_time=draft.end_time,
        description=draft.description,
        notes=draft.notes,
        status=TimesheetStatus.PENDING,
    )
    with _versioned_write(db):
        db.add(timesheet)
        db.flush()
        log_activity(
            db,
            actor_user_id=principal.id,
            activity_type="TIMESHEET_SUBMITTED",
            entity_type="timesheet",
            entity_id=timesheet.id,
            payload={"project_id": timesheet.project_id, "hours": timesheet.hours, "work_date": work_date.isoformat()},
        )
    db.refresh(timesheet)
    timesheet_transitions_total.labels(transition="submit").inc()
    logger.info("timesheet_submitted", extra={"timesheet_id": timesheet.id, "user_id": principal.id})
    return timesheet


def update_timesheet(db: Session, principal: Principal, timesheet_id: int, patch: TimesheetUpdate) -> Timesheet:
    timesheet = get_timesheet_or_404(db, timesheet_id, for_update=True)
    _require_owner(principal, timesheet)
    _require_pending(timesheet, "modify")
    rbac.require_modify(principal, timesheet)

    changes = patch.model_dump(exclude_unset=True)
    merged = {
        field: changes.get(field, getattr(timesheet, field))
        for field in ("project_id", "work_date", "hours", "start_time", "end_time")
    }
    if merged["work_date"] is None:
        merged["work_date"] = timesheet.work_date
        changes.pop("work_date", None)
    _check_entry(**merged)
    owner = timesheet.user
    _check_project(db, project_id=merged["project_id"], owner_id=owner.id, owner_role=owner.role)

    with _versioned_write(db):
        for field, value in changes.items():
            setattr(timesheet, field, value)
        db.flush()
        log_activity(
            db,
            actor_user_id=principal.id,
            activity_type="TIMESHEET_UPDATED",
            entity_type="timesheet",
            entity_id=timesheet.id,
            payload={"fields": sorted(changes)},
        )
    db.refresh(timesheet)
    timesheet_transitions_total.labels(transition="update").inc()
    logger.info("timesheet_updated", extra={"timesheet_id": timesheet.id, "user_id": principal.id})
    return timesheet


def _review(
    db: Session,
    principal: Principal,
    timesheet_id: int,
    *,
    decision: TimesheetStatus,
    comments: Optional[str],
) -> Timesheet:
    timesheet = get_timesheet_or_404(db, timesheet_id, for_update=True)
    rbac.require_approve(principal, timesheet)
    action = "approve" if decision == TimesheetStatus.APPROVED else "reject"
    _require_pending(timesheet, action)

    with _versioned_write(db):
        timesheet.status = decision
        timesheet.reviewed_by_user_id = principal.id
        timesheet.reviewed_at = utcnow()
        timesheet.review_comments = comments
        db.flush()
        log_activity(
            db,
            actor_user_id=principal.id,
            activity_type=f"TIMESHEET_{decision.value}",
            entity_type="timesheet",
            entity_id=timesheet.id,
            message=comments,
            payload={"owner_id": timesheet.user_id},
        )
    db.refresh(timesheet)
    timesheet_transitions_total.labels(transition=action).inc()
    logger.info(f"timesheet_{decision.value.lower()}", extra={"timesheet_id": timesheet.id, "user_id": principal.id})
    return timesheet


def approve_timesheet(
    db: Session,
    principal: Principal,
    timesheet_id: int,
    comments: Optional[str] = None,
) -> Timesheet:
    return _review(db, principal, timesheet_id, decision=TimesheetStatus.APPROVED, comments=comments)


def reject_timesheet(
    db: Session,
    principal: Principal,
    timesheet_id: int,
    comments: Optional[str] = None,
) -> Timesheet:
    return _review(db, principal, timesheet_id, decision=TimesheetStatus.REJECTED, comments=comments)


def delete_timesheet(db: Session, principal: Principal, timesheet_id: int) -> None:
    timesheet = get_timesheet_or_404(db, timesheet_id, for_update=True)
    _require_owner(principal, timesheet)
    _require_pending(timesheet, "delete")
    rbac.require_delete(principal, timesheet)

    owner_id = timesheet.user_id
    with _versioned_write(db):
        db.delete(timesheet)
        db.flush()
        log_activity(
            db,
            actor_user_id=principal.id,
            activity_type="TIMESHEET_DELETED",
            entity_type="timesheet",
            entity_id=timesheet_id,
            payload={"owner_id": owner_id},
        )
    timesheet_transitions_total.labels(transition="delete").inc()
    logger.info("timesheet_deleted", extra={"timesheet_id": timesheet_id, "user_id": principal.id})
