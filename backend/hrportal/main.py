from __future__ import annotations

import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session

from hrportal.core.errors import ServiceUnavailableError, install_exception_handlers
from hrportal.core.logging import RequestLoggingMiddleware, configure_logging
from hrportal.core.observability import PrometheusMiddleware, metrics_endpoint
from hrportal.core.settings import settings
from hrportal.db.base import Base
from hrportal.db.session import engine, get_db
from hrportal.modules.router_registry import include_all_routers

import hrportal.models  # noqa: F401  registers every table on Base.metadata

configure_logging(level=settings.log_level, service=settings.project_name, environment=settings.environment)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.project_name, version=settings.project_version)

allow_origin_regex = None
if not settings.is_production:
    allow_origin_regex = r"^http://(localhost|127\.0\.0\.1)(:\d+)?$"
else:
    if any(origin.strip() == "*" for origin in settings.allow_origins):
        raise RuntimeError("ALLOW_ORIGINS cannot include '*' in production")
    if settings.jwt_secret.startswith("change_me"):
        raise RuntimeError("JWT_SECRET must be set in production")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-Id", "Accept"],
)

app.add_middleware(PrometheusMiddleware)
app.add_middleware(RequestLoggingMiddleware)

install_exception_handlers(app)

app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["observability"], include_in_schema=False)

include_all_routers(app)


@app.get("/healthz", tags=["health"])
def healthcheck(db: Session = Depends(get_db)) -> dict[str, str]:
    try:
        db.execute(text("SELECT 1"))
    except Exception as exc:
        logger.exception("healthcheck_failed")
        raise ServiceUnavailableError("Database unavailable") from exc
    return {"status": "ok", "database": "ok"}


@app.get("/version", tags=["health"])
def version() -> dict[str, str | None]:
    return {
        "version": settings.project_version,
        "git_sha": settings.git_sha,
        "environment": settings.environment,
    }


@app.on_event("startup")
def startup_event() -> None:
    if settings.auto_create_tables:
        Base.metadata.create_all(bind=engine)
        logger.info("tables_created")
