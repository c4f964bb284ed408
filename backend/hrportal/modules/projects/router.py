"""Projects module router aggregation."""
from hrportal.routers import projects

ROUTERS = [projects.router]
