"""Timesheet module router aggregation."""
from hrportal.routers import manager, timesheets

ROUTERS = [timesheets.router, manager.router]
