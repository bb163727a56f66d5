# Zoravo OMS backend entrypoint: FastAPI app, error envelope and routers.

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.app.api import cron
from backend.app.api import invoices
from backend.app.api import login
from backend.app.api import payments
from backend.app.api import users
from backend.app.core.dev_seed import ensure_default_dev_tenant
from backend.app.core.errors import AppError, error_body
from backend.app.core.logging import configure_logging
from backend.app.core.settings import get_settings
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version=settings.api_version)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(login.router)
app.include_router(users.router)
app.include_router(invoices.router)
app.include_router(payments.router)
app.include_router(cron.router)


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("request_failed", extra={"extra": {"path": request.url.path, "error": exc.message}})
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(error_body(exc.message, exc.details)))


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder(error_body("Invalid request", exc.errors())),
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("unhandled_error", extra={"extra": {"path": request.url.path}})
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


@app.get("/")
def read_root():
    return {"app": "Zoravo OMS backend", "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def seed_default_dev_tenant():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_default_dev_tenant(db)
    finally:
        db.close()
