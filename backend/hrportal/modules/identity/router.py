"""Identity module router aggregation."""
from hrportal.routers import admin, auth, hr

ROUTERS = [auth.router, admin.router, hr.router]
