from fastapi import APIRouter

from profile_portal.api.v1.endpoints import health, portal

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health.router)
api_router.include_router(portal.router)
