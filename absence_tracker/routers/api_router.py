from fastapi import APIRouter
from absence_tracker.routers import absences, entitlements, admin

# Centralized API router hub
# Routers are aggregated here, and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(absences.router, tags=["Absences"])
api_router.include_router(entitlements.router, tags=["Entitlements"])
api_router.include_router(admin.router, tags=["Administration"])
