from __future__ import annotations

import itertools
from datetime import date
from functools import lru_cache
from typing import Callable, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from hrportal.core.security import create_user_token, get_password_hash
from hrportal.db.base import Base, utctoday
from hrportal.db.session import get_db
from hrportal.main import app
from hrportal.models.enums import ProjectStatus, Role, TimesheetStatus
from hrportal.models.project import Project
from hrportal.models.project_assignment import ProjectAssignment
from hrportal.models.timesheet import Timesheet
from hrportal.models.user import User

DEFAULT_PASSWORD = "password123"

_counter = itertools.count(1)


@lru_cache(maxsize=None)
def _hash(password: str) -> str:
    return get_password_hash(password)


def auth_headers_for(user: User) -> dict[str, str]:
    token = create_user_token(user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db(engine):
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db):
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    client_instance = TestClient(app)
    try:
        yield client_instance
    finally:
        client_instance.close()
        app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    return auth_headers_for


@pytest.fixture()
def make_user(db: Session):
    def _make_user(
        role: Role = Role.EMPLOYEE,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        manager: Optional[User] = None,
        password: str = DEFAULT_PASSWORD,
        is_active: bool = True,
        department: Optional[str] = None,
    ) -> User:
        n = next(_counter)
        user = User(
            name=name or f"{role.value.title()} {n}",
            email=email or f"{role.value.lower()}{n}@example.com",
            hashed_password=_hash(password),
            role=role,
            employee_id=f"E{n:05d}",
            department=department,
            manager_id=manager.id if manager else None,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def make_project(db: Session):
    def _make_project(
        *,
        name: Optional[str] = None,
        manager: Optional[User] = None,
        status: ProjectStatus = ProjectStatus.ACTIVE,
    ) -> Project:
        project = Project(
            name=name or f"Project {next(_counter)}",
            status=status,
            project_manager_id=manager.id if manager else None,
        )
        db.add(project)
        db.commit()
        db.refresh(project)
        return project

    return _make_project


@pytest.fixture()
def assign(db: Session):
    def _assign(employee: User, project: Project, *, is_active: bool = True) -> ProjectAssignment:
        assignment = ProjectAssignment(
            employee_id=employee.id,
            project_id=project.id,
            role="Developer",
            is_active=is_active,
        )
        db.add(assignment)
        db.commit()
        db.refresh(assignment)
        return assignment

    return _assign


@pytest.fixture()
def make_timesheet(db: Session):
    def _make_timesheet(
        owner: User,
        project: Optional[Project] = None,
        *,
        hours: float = 8.0,
        work_date: Optional[date] = None,
        status: TimesheetStatus = TimesheetStatus.PENDING,
    ) -> Timesheet:
        timesheet = Timesheet(
            user_id=owner.id,
            project_id=project.id if project else None,
            work_date=work_date or utctoday(),
            hours=hours,
            status=status,
        )
        db.add(timesheet)
        db.commit()
        db.refresh(timesheet)
        return timesheet

    return _make_timesheet


@pytest.fixture()
def password() -> str:
    return DEFAULT_PASSWORD
