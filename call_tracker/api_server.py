"""
FastAPI API Server.

Serves the Call Tracker dashboard and the JSON call-logging API over a
single session store.

Start with:
    uvicorn call_tracker.api_server:app --reload --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from dotenv import load_dotenv
load_dotenv(".env.local")

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from call_tracker.api.calls import router as calls_router
from call_tracker.api.dashboard import router as dashboard_router
from call_tracker.api.middleware import RateLimitMiddleware, RequestIdMiddleware
from call_tracker.config import get_settings
from call_tracker.logging_config import get_logger, setup_logging
from call_tracker.services.call_store import get_store

setup_logging()
logger = get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the session store on startup and release it on shutdown."""
    store = get_store()
    await store.initialize()
    logger.info("api_server_starting", store=type(store).__name__)
    try:
        yield
    finally:
        await store.close()
        logger.info("api_server_stopping")


app = FastAPI(
    title=settings.app_title,
    description="Log call outcomes and track session statistics",
    version="0.1.0",
    lifespan=lifespan,
)

# Middleware (each add wraps the previous, so CORS ends up outermost)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(calls_router)
app.include_router(dashboard_router)


@app.get("/health", tags=["System"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "service": "call-tracker"}
