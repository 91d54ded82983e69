# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""AeroRide Server - Main FastAPI application."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from aeroride_server.config import settings
from aeroride_server.database import init_db
from aeroride_server.errors import AppError, app_error_handler
from aeroride_server.rate_limit import build_issue_limiter
from aeroride_server.routers import auth, drivers, profiles, rides, tickets

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def _get_cors_origins() -> list[str]:
    raw = (settings.cors_origins or "*").strip()
    if raw == "*":
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    await init_db()
    if not settings.google_maps_api_key:
        logger.info("GOOGLE_MAPS_API_KEY not set - fares use great-circle distance")
    if not settings.smtp_host:
        logger.info("SMTP_HOST not set - login codes are logged instead of emailed")
    yield


app = FastAPI(
    title="AeroRide Server",
    description="Airport ride booking API with passwordless login",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)
app.state.issue_limiter = build_issue_limiter()
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log method, path, status, and duration for each request (no body or auth headers)."""
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, duration_ms)
    return response

# API v1
app.include_router(auth.router, prefix="/api/v1")
app.include_router(profiles.router, prefix="/api/v1")
app.include_router(drivers.router, prefix="/api/v1")
app.include_router(rides.router, prefix="/api/v1")
app.include_router(tickets.router, prefix="/api/v1")


@app.get("/")
async def root():
    """Health check / API info."""
    return {
        "name": "AeroRide Server",
        "version": VERSION,
        "api": "/api/v1",
        "docs": "/api/docs",
    }


@app.get("/api/v1/health")
async def health():
    """Health check for load balancers."""
    return {"status": "ok"}
