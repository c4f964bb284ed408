"""Central router registry for module-oriented composition."""
from __future__ import annotations

from fastapi import FastAPI

from hrportal.modules.identity.router import ROUTERS as IDENTITY_ROUTERS
from hrportal.modules.projects.router import ROUTERS as PROJECT_ROUTERS
from hrportal.modules.timesheets.router import ROUTERS as TIMESHEET_ROUTERS

ALL_ROUTERS = IDENTITY_ROUTERS + TIMESHEET_ROUTERS + PROJECT_ROUTERS


def include_all_routers(app: FastAPI) -> None:
    for router in ALL_ROUTERS:
        app.include_router(router)
