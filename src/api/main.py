"""FastAPI application entry point."""

import os
import sys
import logging
import tomllib
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

# Load environment variables from .env file
# Must be called before importing modules that read env vars (store selection, MongoDB URL)
load_dotenv()

# main.py is at src/api/main.py, src is two levels up
_src_path = Path(__file__).parent.parent
sys.path.insert(0, str(_src_path))

from api import dependencies
from api.models import FieldError, ValidationErrorResponse
from api.routes import health, users
from utils.logging import setup_structured_logging
from adapter.mongodb.connection import get_mongodb_client, DATABASE_NAME
from adapter.mongodb.user_repository import MongoUserRepository

setup_structured_logging()

logger = logging.getLogger(__name__)

# Read version from pyproject.toml (single source of truth)
_project_root = _src_path.parent
with open(_project_root / "pyproject.toml", "rb") as f:
    VERSION = tomllib.load(f)["project"]["version"]

SERVICE_NAME = "User Directory API"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: validate store selection and prepare indexes."""
    logger.info("Starting %s", SERVICE_NAME, extra={"version": VERSION, "userStore": dependencies.USER_STORE})

    if dependencies.USER_STORE == dependencies.MONGODB_STORE:
        client = get_mongodb_client()
        if client:
            if MongoUserRepository(client[DATABASE_NAME]).ensure_indexes():
                logger.info("MongoDB indexes verified/created successfully")
            else:
                logger.warning("Failed to create some MongoDB indexes")
        else:
            logger.warning("MongoDB unavailable, skipping index creation")
    elif dependencies.USER_STORE == dependencies.MEMORY_STORE:
        dependencies.get_memory_repo()
    else:
        raise RuntimeError(f"Unknown USER_STORE '{dependencies.USER_STORE}'")

    yield


app = FastAPI(
    title=SERVICE_NAME,
    description="CRUD service for user records with case-insensitive unique emails",
    version=VERSION,
    lifespan=lifespan,
)

cors_origins_env = os.getenv("CORS_ORIGINS", "*")
if cors_origins_env == "*":
    cors_origins = ["*"]
    allow_credentials = False  # Browsers don't support credentials with wildcard
else:
    cors_origins = [origin.strip() for origin in cors_origins_env.split(",")]
    allow_credentials = True

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed input as 400 with field-level reasons."""
    errors = []
    for err in exc.errors():
        loc = list(err.get("loc", ()))
        # drop the "body"/"path"/"query" source prefix
        if loc and loc[0] in ("body", "path", "query"):
            loc = loc[1:]
        errors.append(FieldError(
            field=".".join(str(part) for part in loc),
            message=err.get("msg", "Invalid value"),
        ))
    logger.info("Request validation failed", extra={"path": request.url.path, "errorCount": len(errors)})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ValidationErrorResponse(errors=errors).model_dump(),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Opaque 500 for anything the routes did not map."""
    logger.error("Unhandled exception", exc_info=exc, extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An internal error occurred"},
    )


app.include_router(users.router)
app.include_router(health.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": SERVICE_NAME,
        "version": VERSION,
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=port,
        access_log=False,  # structured application logs already cover requests
    )
