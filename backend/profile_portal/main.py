from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from profile_portal.api.v1.router import api_router
from profile_portal.core.config import settings
from profile_portal.services.record_service import record_service

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    try:
        await record_service.initialize(settings)
    except Exception:
        logger.exception("Failed to initialize RecordService — continuing without sheet store")
    yield
    await record_service.close()


app = FastAPI(
    title="Employee Profile Portal API",
    description="HRMS login and personal detail self-service backed by spreadsheet tables",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Employee Profile Portal API"}
