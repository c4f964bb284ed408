"""Role-scoped read paths over timesheets.

Access checks run eagerly when a view is requested; the rows themselves are
streamed lazily as :class:`TimesheetRead` objects, newest work date first.
"""

from __future__ import annotations

from typing import Iterator, Optional

from sqlalchemy import func
from sqlalchemy.orm import Query, Session, joinedload

from hrportal.core import rbac
from hrportal.core.errors import ForbiddenError
from hrportal.core.rbac import Principal
from hrportal.models.enums import Role, TimesheetStatus
from hrportal.models.timesheet import Timesheet
from hrportal.models.user import User
from hrportal.schemas.timesheet import TimesheetRead, TimesheetSummary
from hrportal.services.users import get_user_or_404

REPORTING_ROLES = {Role.ADMIN, Role.HR}


def _base_query(db: Session) -> Query:
    return db.query(Timesheet).options(
        joinedload(Timesheet.user),
        joinedload(Timesheet.project),
        joinedload(Timesheet.reviewed_by),
    )


def _stream(query: Query) -> Iterator[TimesheetRead]:
    for timesheet in query.order_by(Timesheet.work_date.desc(), Timesheet.id.desc()):
        yield TimesheetRead.model_validate(timesheet)


def _managed_filter(query: Query, principal: Principal) -> Query:
    return query.join(User, User.id == Timesheet.user_id).filter(
        User.manager_id == principal.id,
        User.id != principal.id,
    )


def own_timesheets(
    db: Session,
    principal: Principal,
    status: Optional[TimesheetStatus] = None,
) -> Iterator[TimesheetRead]:
    query = _base_query(db).filter(Timesheet.user_id == principal.id)
    if status is not None:
        query = query.filter(Timesheet.status == status)
    return _stream(query)


def managed_timesheets(
    db: Session,
    principal: Principal,
    status: Optional[TimesheetStatus] = None,
    employee_id: Optional[int] = None,
) -> Iterator[TimesheetRead]:
    rbac.require_roles(principal, {Role.MANAGER})
    query = _managed_filter(_base_query(db), principal)
    if employee_id is not None:
        employee = get_user_or_404(db, employee_id)
        if not rbac.manages(principal, employee):
            raise ForbiddenError("Employee is not managed by you")
        query = query.filter(Timesheet.user_id == employee.id)
    if status is not None:
        query = query.filter(Timesheet.status == status)
    return _stream(query)


def all_timesheets(
    db: Session,
    principal: Principal,
    status: Optional[TimesheetStatus] = None,
    user_id: Optional[int] = None,
) -> Iterator[TimesheetRead]:
    rbac.require_roles(principal, REPORTING_ROLES)
    query = _base_query(db)
    if user_id is not None:
        query = query.filter(Timesheet.user_id == user_id)
    if status is not None:
        query = query.filter(Timesheet.status == status)
    return _stream(query)


def managed_summary(db: Session, principal: Principal) -> TimesheetSummary:
    rbac.require_roles(principal, {Role.MANAGER})
    employees = (
        db.query(func.count(User.id))
        .filter(User.manager_id == principal.id, User.id != principal.id)
        .scalar()
        or 0
    )
    counts = {status: 0 for status in TimesheetStatus}
    hours = {status: 0.0 for status in TimesheetStatus}
    rows = (
        _managed_filter(
            db.query(Timesheet.status, func.count(Timesheet.id), func.sum(Timesheet.hours)).select_from(Timesheet),
            principal,
        )
        .group_by(Timesheet.status)
        .all()
    )
    for status, count, total in rows:
        counts[TimesheetStatus(status)] = count
        hours[TimesheetStatus(status)] = float(total or 0)
    return TimesheetSummary(
        employees=employees,
        total=sum(counts.values()),
        pending=counts[TimesheetStatus.PENDING],
        approved=counts[TimesheetStatus.APPROVED],
        rejected=counts[TimesheetStatus.REJECTED],
        total_hours=round(sum(hours.values()), 2),
        approved_hours=round(hours[TimesheetStatus.APPROVED], 2),
    )
