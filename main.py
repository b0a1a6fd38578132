# -*- coding: utf-8 -*-
"""
FastAPI application for the campus event management API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import create_first_user
from campus_events import config
from campus_events.database import Base, engine
from campus_events.errors import AppError
from campus_events import models  # noqa: F401
from campus_events.routes import (auth_fastapi, certificates_fastapi, events_fastapi, forum_fastapi,
                                  leaderboard_fastapi, notifications_fastapi, registrations_fastapi,
                                  users_fastapi)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=config.LOG_FILE,
)
logger = logging.getLogger("campus_events")


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ready")
    except Exception:
        logger.exception("Failed to create database tables")
        raise
    create_first_user.create_first_user()
    yield


env = config.ENVIRONMENT

app = FastAPI(
    title="Campus Events API",
    description="Event management for campus organizers and students",
    version="1.0.0",
    docs_url="/docs" if env != "production" else None,
    redoc_url="/redoc" if env != "production" else None,
    openapi_url="/openapi.json" if env != "production" else None,
    lifespan=lifespan,
)

origins = [
    config.FRONTEND_URL,
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- ERROR HANDLERS: every failure leaves as {success: false, message, reason, errors?} ---

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        # drop the "body"/"query"/"path" prefix from the location
        loc = [str(part) for part in error.get("loc", ())[1:]]
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({"field": ".".join(loc) or "body", "message": message})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": "Validation failed", "reason": "validation_failed", "errors": errors},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail), "reason": f"http_{exc.status_code}"},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "Internal server error", "reason": "internal_error"},
    )


app.include_router(auth_fastapi.router)
app.include_router(users_fastapi.router)
app.include_router(events_fastapi.router)
app.include_router(registrations_fastapi.router)
app.include_router(certificates_fastapi.router)
app.include_router(forum_fastapi.router)
app.include_router(notifications_fastapi.router)
app.include_router(leaderboard_fastapi.router)


@app.get("/", tags=["Root"])
async def root():
    return {
        "success": True,
        "message": "Campus Events API",
        "data": {
            "documentation": "/docs",
            "endpoints": [
                {"auth": "/api/v1/auth"},
                {"users": "/api/v1/users"},
                {"events": "/api/v1/events"},
                {"registrations": "/api/v1/registrations"},
                {"certificates": "/api/v1/certificates"},
                {"forum": "/api/v1/forum"},
                {"notifications": "/api/v1/notifications"},
                {"leaderboard": "/api/v1/leaderboard"},
            ],
        },
    }


@app.get("/health", tags=["Root"])
async def health():
    return {"success": True, "message": "OK", "data": {"environment": env}}
