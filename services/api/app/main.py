"""FastAPI application - ALF Coach session API.

Each session owns one stage controller held in process memory.
"""

from __future__ import annotations

import os
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from alf_coach import __version__

from .routers import sessions

logger = logging.getLogger(__name__)

app = FastAPI(
    title="ALF Coach API",
    version=__version__,
    description="Guided project blueprint conversation: assess, capture, validate, advance",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
ALLOWED_ORIGINS = os.environ.get(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in ALLOWED_ORIGINS],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(sessions.router, prefix="/v1", tags=["sessions"])


# ---------------------------------------------------------------------------
# Health Check
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}


@app.get("/")
async def root():
    return {"message": "ALF Coach API", "docs": "/docs"}
