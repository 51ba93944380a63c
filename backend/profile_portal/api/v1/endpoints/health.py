from __future__ import annotations

from fastapi import APIRouter

from profile_portal.core.config import settings
from profile_portal.services.record_service import record_service

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check():
    services: dict[str, str] = {}

    if record_service.initialized:
        ok = await record_service.check_connection()
        services["sheet_store"] = "ok" if ok else "error"
    else:
        services["sheet_store"] = "not_configured"

    all_ok = all(v in ("ok", "not_configured") for v in services.values())

    return {
        "status": "healthy" if all_ok else "degraded",
        "version": settings.APP_VERSION,
        "services": services,
    }


@router.get("/ready")
async def readiness_check():
    return {"ready": True}
