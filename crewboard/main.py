"""
FastAPI application entry point.

Configures logging, middleware, routes, and exception handlers.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from crewboard.core.config import settings
from crewboard.core.exceptions import CrewboardError
from crewboard.core.logging_config import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging()
    logger.info("Starting Crewboard API in %s mode", settings.ENVIRONMENT)
    yield
    logger.info("Shutting down Crewboard API")


app = FastAPI(
    title="Crewboard API",
    description="Teams, projects and tasks with role-based access",
    version="1.0.0",
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
    openapi_url="/api/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CrewboardError)
async def crewboard_error_handler(request: Request, exc: CrewboardError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "code": "INVALID_REQUEST",
            "message": "Request validation failed",
            "details": {"errors": errors},
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    body = {
        "success": False,
        "code": "INTERNAL_SERVER_ERROR",
        "message": str(exc) if settings.DEBUG else "An unexpected error occurred",
    }
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "version": "1.0.0",
    }


from crewboard.routers import admin, projects, tasks, teams, users  # noqa: E402

app.include_router(users.router, prefix="/api/v1/user", tags=["Users"])
app.include_router(teams.router, prefix="/api/v1/team", tags=["Teams"])
app.include_router(projects.router, prefix="/api/v1/project", tags=["Projects"])
app.include_router(tasks.router, prefix="/api/v1/task", tags=["Tasks"])
app.include_router(admin.router, prefix="/api/v1/admin", tags=["Admin"])
