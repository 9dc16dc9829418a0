from __future__ import annotations

import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import AppError, InvalidId, ValidationFailed
from app.api.envelope import envelope
from app.api.routes.auth import router as auth_router
from app.api.routes.classrooms import router as classrooms_router
from app.api.routes.health import router as health_router
from app.api.routes.lessons import router as lessons_router
from app.api.routes.progress import router as progress_router
from app.api.routes.quiz import router as quiz_router
from app.api.routes.topics import practice_router, router as topics_router
from app.db.session import init_db


logging.basicConfig(
    level=getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = req_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = req_id
    return response


def _error_response(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    req_id = getattr(request.state, "request_id", str(uuid.uuid4()))
    return JSONResponse(
        status_code=status_code,
        content=envelope(request_id=req_id, data=None, error={"code": code, "message": message}),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if isinstance(detail, dict):
        code = str(detail.get("code") or "HTTP_ERROR")
        message = str(detail.get("message") or code)
    else:
        code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
        message = str(detail)
    if exc.status_code == 503:
        logger.warning("Storage unavailable: %s %s", request.method, request.url.path)
    return _error_response(request, exc.status_code, code, message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    # A malformed id in the URL is reported on its own so clients can tell it from a bad body
    err: AppError = ValidationFailed()
    if any(tuple(e.get("loc") or ())[:1] == ("path",) for e in errors):
        err = InvalidId()
    return _error_response(request, err.status_code, err.detail["code"], err.message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(request, 500, "INTERNAL_ERROR", "Internal server error")


@app.on_event("startup")
def create_schema():
    init_db()


app.include_router(health_router, prefix=settings.API_PREFIX)
app.include_router(auth_router, prefix=settings.API_PREFIX)
app.include_router(classrooms_router, prefix=settings.API_PREFIX)
app.include_router(topics_router, prefix=settings.API_PREFIX)
app.include_router(practice_router, prefix=settings.API_PREFIX)
app.include_router(quiz_router, prefix=settings.API_PREFIX)
app.include_router(lessons_router, prefix=settings.API_PREFIX)
app.include_router(progress_router, prefix=settings.API_PREFIX)
