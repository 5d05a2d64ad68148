"""GymBuddy - FastAPI Application Entry Point."""

import logging
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager

from gymbuddy import __version__
from gymbuddy.config import get_settings
from gymbuddy.database import engine, Base
from gymbuddy.errors import GymBuddyError
from gymbuddy.logging_config import setup_logging
from gymbuddy.routers import (
    auth_router,
    invitations_router,
    matches_router,
    notifications_router,
    sessions_router,
    swipe_router,
    users_router,
)
from gymbuddy.sockets.chat_socket import router as chat_socket_router


settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    setup_logging()
    # Startup: Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("%s API %s started", settings.app_name, __version__)
    yield


app = FastAPI(
    title="GymBuddy API",
    description="Find workout partners nearby, match and chat",
    version=__version__,
    lifespan=lifespan,
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============== Error envelope ==============

def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(GymBuddyError)
async def gymbuddy_error_handler(request: Request, exc: GymBuddyError):
    return error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Validation error"
    return error_response(400, message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(exc.status_code, message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "Something went wrong")


# Include routers
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(swipe_router)
app.include_router(matches_router)
app.include_router(notifications_router)
app.include_router(invitations_router)
app.include_router(sessions_router)
app.include_router(chat_socket_router)


@app.get("/")
def root():
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": __version__,
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "ok", "timestamp": datetime.utcnow().isoformat()}
