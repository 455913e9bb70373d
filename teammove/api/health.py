"""
Health endpoints for the TEAMMOVE backend.

Lightweight probes for operational monitoring without exposing secrets.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import inspect

from teammove.core.database import check_connection, get_engine, metadata

logger = logging.getLogger("teammove")

root_router = APIRouter(tags=["health"])


def _not_ready(detail: str) -> JSONResponse:
    return JSONResponse(status_code=503, content={"status": "error", "detail": detail})


@root_router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}


@root_router.get("/readyz")
def readyz():
    """Readiness check: DB connectivity + required tables."""
    if not check_connection():
        return _not_ready("database unreachable")

    required_tables = sorted(metadata.tables)
    try:
        inspector = inspect(get_engine())
        missing = [t for t in required_tables if not inspector.has_table(t)]
    except Exception as e:
        logger.error(f"[readyz] schema inspection failed: {e}")
        return _not_ready("database unreachable")

    if missing:
        detail = f"missing tables: {', '.join(missing)}"
        logger.warning(f"[readyz] {detail}")
        return _not_ready(detail)

    return {"status": "ok"}
