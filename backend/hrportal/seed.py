from __future__ import annotations

import argparse
from datetime import timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from hrportal.core.security import get_password_hash
from hrportal.core.settings import settings
from hrportal.db.base import Base, utcnow, utctoday
from hrportal.db.session import engine, session_scope
from hrportal.models.enums import ProjectPriority, ProjectStatus, Role, TimesheetStatus
from hrportal.models.project import Project
from hrportal.models.project_assignment import ProjectAssignment
from hrportal.models.timesheet import Timesheet
from hrportal.models.user import User
from hrportal.services.activity import log_activity

DEMO_PASSWORD = "password123"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the HR Portal database with demo data")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables before seeding")
    return parser.parse_args()


def reset_db() -> None:
    if settings.is_production:
        raise RuntimeError("Refusing to reset the database in production.")
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def get_or_create_user(
    db: Session,
    *,
    email: str,
    name: str,
    role: Role,
    employee_id: str,
    department: str | None = None,
    job_title: str | None = None,
    manager: User | None = None,
) -> User:
    user = db.query(User).filter(User.email == email).first()
    if user:
        return user
    user = User(
        email=email,
        name=name,
        hashed_password=get_password_hash(DEMO_PASSWORD),
        role=role,
        employee_id=employee_id,
        department=department,
        job_title=job_title,
        manager_id=manager.id if manager else None,
        is_active=True,
    )
    db.add(user)
    db.flush()
    return user


def get_or_create_project(db: Session, *, name: str, manager: User, creator: User, **fields) -> Project:
    project = db.query(Project).filter(Project.name == name).first()
    if project:
        return project
    project = Project(name=name, project_manager_id=manager.id, created_by_user_id=creator.id, **fields)
    db.add(project)
    db.flush()
    return project


def assign(db: Session, *, project: Project, employee: User, role: str, assigned_by: User) -> None:
    exists = (
        db.query(ProjectAssignment.id)
        .filter(ProjectAssignment.project_id == project.id, ProjectAssignment.employee_id == employee.id)
        .first()
    )
    if exists:
        return
    db.add(
        ProjectAssignment(
            project_id=project.id,
            employee_id=employee.id,
            role=role,
            allocated_hours=40.0,
            assigned_by_user_id=assigned_by.id,
        )
    )
    db.flush()


def seed_users(db: Session) -> dict[str, User]:
    admin = get_or_create_user(
        db, email="admin@hrportal.local", name="System Admin", role=Role.ADMIN, employee_id="ADM001", department="IT"
    )
    hr = get_or_create_user(
        db, email="hr@hrportal.local", name="Helen Reyes", role=Role.HR, employee_id="HR001", department="Human Resources"
    )
    manager = get_or_create_user(
        db,
        email="manager@hrportal.local",
        name="Mark Mensah",
        role=Role.MANAGER,
        employee_id="MGR001",
        department="Engineering",
        job_title="Engineering Manager",
    )
    manager_two = get_or_create_user(
        db,
        email="bob@hrportal.local",
        name="Bob Novak",
        role=Role.MANAGER,
        employee_id="MGR002",
        department="Design",
        job_title="Design Lead",
    )
    employee = get_or_create_user(
        db,
        email="employee@hrportal.local",
        name="Evan Ortiz",
        role=Role.EMPLOYEE,
        employee_id="EMP001",
        department="Engineering",
        job_title="Software Engineer",
        manager=manager,
    )
    alice = get_or_create_user(
        db,
        email="alice@hrportal.local",
        name="Alice Tan",
        role=Role.EMPLOYEE,
        employee_id="EMP002",
        department="Design",
        job_title="UI Designer",
        manager=manager_two,
    )
    return {
        "admin": admin,
        "hr": hr,
        "manager": manager,
        "manager_two": manager_two,
        "employee": employee,
        "alice": alice,
    }


def seed_projects(db: Session, users: dict[str, User]) -> dict[str, Project]:
    today = utctoday()
    specs = [
        ("Project Alpha", users["manager"], ProjectStatus.ACTIVE, ProjectPriority.HIGH, "Customer portal rebuild"),
        ("Project Beta", users["manager"], ProjectStatus.ACTIVE, ProjectPriority.MEDIUM, "Quality and bug triage"),
        ("Project Gamma", users["manager_two"], ProjectStatus.ACTIVE, ProjectPriority.MEDIUM, "Frontend refresh"),
        ("Project Delta", users["manager_two"], ProjectStatus.PLANNING, ProjectPriority.LOW, "Documentation overhaul"),
    ]
    projects: dict[str, Project] = {}
    for name, manager, status, priority, description in specs:
        projects[name] = get_or_create_project(
            db,
            name=name,
            manager=manager,
            creator=users["hr"],
            description=description,
            status=status,
            priority=priority,
            start_date=today - timedelta(days=30),
            budget=Decimal("50000.00"),
        )
    assign(db, project=projects["Project Alpha"], employee=users["employee"], role="Developer", assigned_by=users["hr"])
    assign(db, project=projects["Project Beta"], employee=users["employee"], role="Tester", assigned_by=users["hr"])
    assign(db, project=projects["Project Gamma"], employee=users["alice"], role="Designer", assigned_by=users["hr"])
    assign(db, project=projects["Project Delta"], employee=users["alice"], role="Writer", assigned_by=users["hr"])
    return projects


def seed_timesheets(db: Session, users: dict[str, User], projects: dict[str, Project]) -> None:
    if db.query(Timesheet.id).first():
        return
    today = utctoday()
    entries = [
        ("employee", "Project Alpha", 8, "Working on user authentication", 2, TimesheetStatus.APPROVED),
        ("employee", "Project Beta", 6, "Bug fixes and testing", 1, TimesheetStatus.PENDING),
        ("employee", "Project Alpha", 7, "Database optimization", 0, TimesheetStatus.PENDING),
        ("alice", "Project Gamma", 8, "Frontend development", 3, TimesheetStatus.APPROVED),
        ("alice", "Project Delta", 5, "Code review and documentation", 1, TimesheetStatus.REJECTED),
        ("alice", "Project Gamma", 8, "UI improvements", 0, TimesheetStatus.PENDING),
    ]
    for owner_key, project_name, hours, description, days_ago, status in entries:
        owner = users[owner_key]
        reviewer = owner.manager if status != TimesheetStatus.PENDING else None
        db.add(
            Timesheet(
                user_id=owner.id,
                project_id=projects[project_name].id,
                work_date=today - timedelta(days=days_ago),
                hours=float(hours),
                description=description,
                status=status,
                reviewed_by_user_id=reviewer.id if reviewer else None,
                reviewed_at=utcnow() if reviewer else None,
                review_comments="Needs more detail" if status == TimesheetStatus.REJECTED else None,
            )
        )
    db.flush()


def main() -> None:
    args = parse_args()
    if args.reset:
        reset_db()
    else:
        Base.metadata.create_all(bind=engine)

    with session_scope() as db:
        admin_exists = db.query(User).filter(User.email == "admin@hrportal.local").first()
        if admin_exists and not args.reset:
            print("Seed appears to have already run. Use --reset to reseed.")
            return

        users = seed_users(db)
        projects = seed_projects(db, users)
        seed_timesheets(db, users, projects)
        log_activity(db, actor_user_id=users["admin"].id, activity_type="SEED_COMPLETED", message="Demo data seeded")

    print("Seed complete.")
    print(f"Admin login: admin@hrportal.local / {DEMO_PASSWORD}")


if __name__ == "__main__":
    main()
