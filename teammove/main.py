import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv

# Load env from teammove/.env before settings are read
backend_dir = os.path.dirname(os.path.abspath(__file__))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(backend_dir, ".env"))

from teammove.core.config import settings, validate_config, cors_origins  # noqa: E402
from teammove.core.logging import configure_logging  # noqa: E402
from teammove.core.middleware.request_id import RequestIdMiddleware  # noqa: E402
from teammove.core.validation import validate_env  # noqa: E402
from teammove.core.database import create_all_tables  # noqa: E402
from teammove.core.errors import (  # noqa: E402
    AppError,
    app_error_handler,
    http_error_handler,
    request_validation_handler,
    unhandled_exception_handler,
)
from teammove.api import admin, companies, events, health, plans  # noqa: E402
from teammove.features.plans.service import seed_plans  # noqa: E402

configure_logging(settings.ENV)
validate_env()
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("teammove")
    logger.info("Starting TEAMMOVE backend...")
    create_all_tables()
    seed_plans()
    try:
        yield
    finally:
        logger.info("Stopping TEAMMOVE backend...")


app = FastAPI(title="TEAMMOVE - Backend", lifespan=lifespan)

# Middlewares
app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_error_handler)
app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["x-request-id", "x-plan-poll-interval"],
)

app.include_router(health.root_router, tags=["health"])
app.include_router(plans.router)
app.include_router(companies.router)
app.include_router(events.router)
app.include_router(admin.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("teammove.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=settings.ENV == "development")
