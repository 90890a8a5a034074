import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import courses, groups, health, resources, sessions
from app.core.config import get_settings
from app.core.exceptions import AppError
from app.core.logging import configure_logging
from app.core.middleware import RequestLoggingMiddleware, RequestSizeLimitMiddleware
from app.db.bootstrap import ensure_runtime_schema

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(settings)
    ensure_runtime_schema()
    yield


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s on %s %s: %s (details: %s)",
            exc.code,
            request.method,
            request.url.path,
            exc.message,
            exc.details,
            exc_info=exc,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.code, "message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(sessions.router, prefix=f"{settings.api_prefix}/sessions", tags=["sessions"])
app.include_router(resources.students_router, prefix=f"{settings.api_prefix}/students", tags=["students"])
app.include_router(resources.faculty_router, prefix=f"{settings.api_prefix}/faculty", tags=["faculty"])
app.include_router(resources.halls_router, prefix=f"{settings.api_prefix}/halls", tags=["halls"])
app.include_router(
    groups.student_groups_router, prefix=f"{settings.api_prefix}/student-groups", tags=["student-groups"]
)
app.include_router(
    groups.faculty_groups_router, prefix=f"{settings.api_prefix}/faculty-groups", tags=["faculty-groups"]
)
app.include_router(groups.hall_groups_router, prefix=f"{settings.api_prefix}/hall-groups", tags=["hall-groups"])
app.include_router(courses.router, prefix=f"{settings.api_prefix}/courses", tags=["courses"])
